"""Tests for structural context extraction over PHP sources."""

from codedoc.context import (
    AppContext,
    Route,
    extract_class_name,
    extract_context,
    extract_controller_actions,
    extract_imports,
    extract_model_relationships,
    extract_namespace,
    extract_routes,
    find_file_from_import,
    is_likely_model,
    is_route_file,
)
from tests.fixtures import SAMPLE_CONFIG_YAML, SAMPLE_CONTROLLER, SAMPLE_MODEL, SAMPLE_ROUTES, write_tree


class TestHelpers:

    def test_namespace_and_class(self):
        assert extract_namespace(SAMPLE_CONTROLLER) == "App\\Http\\Controllers"
        assert extract_class_name(SAMPLE_CONTROLLER) == "UserController"

    def test_imports(self):
        assert extract_imports(SAMPLE_CONTROLLER) == ["App\\Models\\User", "Illuminate\\Http\\Request"]

    def test_controller_actions_exclude_constructor(self):
        assert extract_controller_actions(SAMPLE_CONTROLLER) == ["index", "show"]

    def test_model_detection(self):
        assert is_likely_model(SAMPLE_MODEL)
        assert not is_likely_model("<?php echo 'hi';")

    def test_relationships(self):
        rels = extract_model_relationships(SAMPLE_MODEL)
        by_method = {r.method: r for r in rels}

        assert by_method["posts"].type == "hasMany"
        assert by_method["posts"].related == "Post::class"
        assert by_method["team"].type == "belongsTo"
        assert by_method["team"].related == "App\\Models\\Team"

    def test_routes_with_names(self):
        routes = extract_routes(SAMPLE_ROUTES)

        assert [(r.method, r.path, r.controller, r.action) for r in routes] == [
            ("GET", "/users", "UserController", "index"),
            ("GET", "/users/{id}", "UserController", "show"),
            ("POST", "/users", "UserController", "store"),
        ]
        assert routes[0].name == "users.index"
        assert routes[1].name == "users.show"
        assert routes[2].name == ""

    def test_route_file_detection(self):
        assert is_route_file("/project/routes/console.php")
        assert is_route_file("/project/app/web.php")
        assert not is_route_file("/project/app/Http/Kernel.php")


class TestFindFileFromImport:

    def test_lowercased_first_segment(self, tmp_path):
        write_tree(tmp_path, {"app/Models/User.php": "<?php"})
        found = find_file_from_import("App\\Models\\User", [tmp_path])
        assert found == str(tmp_path / "app" / "Models" / "User.php")

    def test_root_is_namespace_root(self, tmp_path):
        write_tree(tmp_path, {"app/Models/User.php": "<?php"})
        found = find_file_from_import("App\\Models\\User as Member", [tmp_path / "app"])
        assert found == str(tmp_path / "app" / "Models" / "User.php")

    def test_unknown_import(self, tmp_path):
        assert find_file_from_import("Illuminate\\Http\\Request", [tmp_path]) is None


class TestExtractContext:

    def test_routes_accumulate_across_files(self, tmp_path):
        app_context = AppContext(source_roots=[tmp_path])

        route_ctx = extract_context("/project/routes/web.php", SAMPLE_ROUTES, app_context)
        controller_ctx = extract_context(
            "/project/app/Http/Controllers/UserController.php", SAMPLE_CONTROLLER, app_context,
        )

        assert route_ctx.is_route_file
        assert len(route_ctx.defined_routes) == 3
        assert controller_ctx.is_controller
        assert controller_ctx.controller_actions == ["index", "show"]
        assert {r.action for r in controller_ctx.routes} == {"index", "show", "store"}
        assert "App\\Http\\Controllers\\UserController" in app_context.controllers

    def test_model_recorded_in_app_context(self, tmp_path):
        app_context = AppContext(source_roots=[tmp_path])

        ctx = extract_context("/project/app/Models/User.php", SAMPLE_MODEL, app_context)

        assert ctx.is_model
        assert "App\\Models\\User" in app_context.models

    def test_separate_runs_do_not_share_state(self):
        first, second = AppContext(), AppContext()
        extract_context("/p/routes/web.php", SAMPLE_ROUTES, first)

        ctx = extract_context("/p/app/Http/Controllers/UserController.php", SAMPLE_CONTROLLER, second)

        assert ctx.routes == []
        assert second.routes == []

    def test_related_files_resolved(self, tmp_path):
        write_tree(tmp_path, {"app/Models/User.php": SAMPLE_MODEL})
        app_context = AppContext(source_roots=[tmp_path / "app"])

        ctx = extract_context(tmp_path / "app/Http/Controllers/UserController.php", SAMPLE_CONTROLLER, app_context)

        assert ctx.related_files == {"App\\Models\\User": str(tmp_path / "app" / "Models" / "User.php")}

    def test_non_php_file_has_no_php_hints(self):
        ctx = extract_context("/p/config/app.yaml", SAMPLE_CONFIG_YAML, AppContext())
        assert ctx.is_empty()
        assert not ctx.is_controller

    def test_route_dataclass_default_name(self):
        assert Route("GET", "/", "HomeController", "index").name == ""
