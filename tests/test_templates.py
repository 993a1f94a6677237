"""
tests/test_templates.py
Tests for apig.templates: views, contexts and the Jinja2 renderer.
"""

from __future__ import annotations

import pathlib

import pytest

from apig.errors import TemplateError
from apig.models import Detail, ModelInfo
from apig.templates import (
    APIB_MODEL_TEMPLATE,
    CONTROLLER_TEMPLATE,
    MIGRATION_TEMPLATE,
    ControllerContext,
    SkeletonContext,
    TemplateRenderer,
    apib_model_context,
    build_columns,
    build_model_view,
    controller_context,
    migration_context,
    skeleton_context,
)


# ===========================================================================
# Views
# ===========================================================================


class TestModelView:
    def test_names_and_fields(self, user_model: ModelInfo) -> None:
        view = build_model_view(user_model)
        assert view.name == "User"
        assert view.names.route == "users"
        assert [f.name for f in view.fields] == ["ID", "Name", "CreatedAt", "UpdatedAt"]

    def test_identifier_and_attributes(self, user_model: ModelInfo) -> None:
        view = build_model_view(user_model)
        assert view.identifier.json_name == "id"
        assert [f.json_name for f in view.attributes] == ["name", "created_at", "updated_at"]
        assert view.associations == ()

    def test_association_views(self, example_detail: Detail) -> None:
        user = example_detail.get_model("User")
        assert user is not None
        view = build_model_view(user)
        profile, emails = view.associations
        assert profile.is_belongs_to
        assert profile.target_names is not None
        assert profile.target_names.file_name == "profile"
        assert emails.is_has_many
        assert [f.name for f in view.attributes] == ["Name", "Profile", "CreatedAt", "UpdatedAt"]

    def test_presence(self, user_model: ModelInfo) -> None:
        view = build_model_view(user_model)
        assert view.fields[1].presence == "required"
        assert view.fields[2].presence == "optional, nullable"


class TestBuildColumns:
    def test_gofmt_alignment(self, user_model: ModelInfo) -> None:
        columns = build_columns(user_model)
        assert [c.name for c in columns] == ["ID       ", "Name     ", "CreatedAt", "UpdatedAt"]
        assert [c.go_type for c in columns] == ["uint      ", "string    ", "*time.Time", "*time.Time"]
        assert columns[0].tag == 'json:"id"'

    def test_associations_become_foreign_keys(self, example_detail: Detail) -> None:
        user = example_detail.get_model("User")
        assert user is not None
        columns = build_columns(user)
        names = [c.name.strip() for c in columns]
        assert names == ["ID", "Name", "ProfileID", "CreatedAt", "UpdatedAt"]
        profile_column = columns[2]
        assert profile_column.go_type.strip() == "*uint"
        assert profile_column.tag == 'json:"profile_id"'

    def test_raw_tag_appended(self, example_detail: Detail) -> None:
        user = example_detail.get_model("User")
        assert user is not None
        name_column = build_columns(user)[1]
        assert name_column.tag == 'json:"name" sql:"not null"'


# ===========================================================================
# Contexts
# ===========================================================================


class TestContexts:
    def test_skeleton_context(self, user_detail: Detail) -> None:
        assert skeleton_context(user_detail) == SkeletonContext(
            vcs="github.com",
            user="wantedly",
            project="api-server",
            import_dir="github.com/wantedly/api-server",
        )

    def test_controller_context(self, user_detail: Detail, user_model: ModelInfo) -> None:
        ctx = controller_context(user_detail, user_model)
        assert isinstance(ctx, ControllerContext)
        assert ctx.import_dir == "github.com/wantedly/api-server"
        assert ctx.model.names.plural_var == "users"

    def test_migration_needs_time(self, user_detail: Detail, user_model: ModelInfo) -> None:
        assert migration_context(user_detail, user_model).needs_time

    def test_association_type_ignored_for_time_import(self) -> None:
        model = ModelInfo.model_validate({
            "name": "Visit",
            "fields": [
                {"name": "ID", "json_name": "id", "type": "uint"},
                {"name": "Slot", "json_name": "slot", "type": "*time.Time",
                 "association": {"kind": "belongs_to", "target": "Slot"}},
            ],
        })
        detail = Detail(vcs="github.com", user="wantedly", project="api-server", models=[model])
        assert not migration_context(detail, model).needs_time

    def test_migration_without_time(self, example_detail: Detail) -> None:
        profile = example_detail.get_model("Profile")
        assert profile is not None
        assert not migration_context(example_detail, profile).needs_time


# ===========================================================================
# Renderer
# ===========================================================================


class TestTemplateRenderer:
    def test_render_is_deterministic(
        self, renderer: TemplateRenderer, user_detail: Detail, user_model: ModelInfo
    ) -> None:
        ctx = controller_context(user_detail, user_model)
        assert renderer.render(CONTROLLER_TEMPLATE, ctx) == renderer.render(CONTROLLER_TEMPLATE, ctx)

    def test_preloads_associations(
        self, renderer: TemplateRenderer, example_detail: Detail
    ) -> None:
        user = example_detail.get_model("User")
        assert user is not None
        text = renderer.render(CONTROLLER_TEMPLATE, controller_context(example_detail, user))
        assert text.count('db = db.Preload("Profile")') == 2
        assert text.count('db = db.Preload("Emails")') == 2

    def test_migration_without_time_import(
        self, renderer: TemplateRenderer, example_detail: Detail
    ) -> None:
        profile = example_detail.get_model("Profile")
        assert profile is not None
        text = renderer.render(MIGRATION_TEMPLATE, migration_context(example_detail, profile))
        assert '"time"' not in text
        assert 'import (\n\t"github.com/jinzhu/gorm"\n)' in text

    def test_missing_template(self, renderer: TemplateRenderer, user_detail: Detail) -> None:
        with pytest.raises(TemplateError) as exc_info:
            renderer.render("nope.go.j2", skeleton_context(user_detail))
        assert exc_info.value.template_id == "nope.go.j2"
        assert exc_info.value.model_name == "api-server"

    def test_undefined_name_is_an_error(
        self, renderer: TemplateRenderer, user_detail: Detail, user_model: ModelInfo
    ) -> None:
        ctx = controller_context(user_detail, user_model)
        with pytest.raises(TemplateError) as exc_info:
            renderer.render_string("{{ model.nickname }}", ctx, template_id="inline")
        assert exc_info.value.template_id == "inline"
        assert exc_info.value.model_name == "User"
        assert "inline" in str(exc_info.value)
        assert "User" in str(exc_info.value)

    def test_filters(self, renderer: TemplateRenderer, user_detail: Detail) -> None:
        text = renderer.render_string(
            "{{ 'UserProfile' | snake_case }} {{ 'UserProfile' | camel_case }} {{ 'Category' | plural }}",
            skeleton_context(user_detail),
        )
        assert text == "user_profile userProfile Categories"

    def test_custom_template_dir(self, tmp_path: pathlib.Path, user_detail: Detail) -> None:
        (tmp_path / "hello.j2").write_text("module {{ import_dir }}\n")
        custom = TemplateRenderer(tmp_path)
        assert custom.render("hello.j2", skeleton_context(user_detail)) == (
            "module github.com/wantedly/api-server\n"
        )
        assert custom.list_templates() == ["hello.j2"]

    def test_source_of_static_file(self, renderer: TemplateRenderer) -> None:
        data = renderer.source("skeleton/helper/field.go")
        assert data.startswith(b"package helper\n")

    def test_source_missing(self, renderer: TemplateRenderer) -> None:
        with pytest.raises(TemplateError):
            renderer.source("skeleton/missing.go")

    def test_bundle_lists_skeleton(self, renderer: TemplateRenderer) -> None:
        assert "skeleton/main.go.j2" in renderer.list_templates("skeleton/")

    def test_apib_attributes_follow_field_order(self, renderer: TemplateRenderer) -> None:
        detail = Detail.model_validate({
            "vcs": "github.com",
            "user": "wantedly",
            "project": "api-server",
            "models": [
                {
                    "name": "Account",
                    "fields": [
                        {"name": "ID", "json_name": "id", "type": "uint"},
                        {"name": "Profile", "json_name": "profile", "type": "uint",
                         "association": {"kind": "belongs_to", "target": "Profile"}},
                        {"name": "Emails", "json_name": "emails", "type": "uint",
                         "association": {"kind": "has_many", "target": "Profile"}},
                        {"name": "Name", "json_name": "name", "type": "string"},
                    ],
                },
                {
                    "name": "Profile",
                    "fields": [{"name": "ID", "json_name": "id", "type": "uint"}],
                },
            ],
        })
        account = detail.models[0]
        text = renderer.render(APIB_MODEL_TEMPLATE, apib_model_context(detail, account))
        create = text[text.index("## account_create (object)"):text.index("## account_object")]
        assert create == (
            "## account_create (object)\n"
            "+ profile_id: `1` (number, required)\n"
            "+ name: `sample` (string, required)\n"
            "\n"
        )
