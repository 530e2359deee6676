"""
RecipeLoader Unit Tests

Loading of the bundled catalog and of ad-hoc search paths: broken files are
skipped, an empty catalog is an error and recipes are keyed by (id, version).
"""

import logging

import pytest

from deploy_orchestration.exceptions import RecipeLoaderError
from deploy_orchestration.recipes import (
    FieldEqualsRule,
    OptionSettingType,
    RecipeLoader,
    create_recipe,
    find_recipe_definitions_path,
)

from conftest import cluster_recipe_data, write_recipe


class TestBundledRecipes:
    """The recipe definitions shipped with the package."""

    def test_bundled_catalog_loads(self):
        loader = RecipeLoader([find_recipe_definitions_path()])
        ids = {r.id for r in loader.load_all()}
        assert ids == {"AspNetAppEcsFargate", "AspNetAppElasticBeanstalkLinux", "ConsoleAppEcsFargateService"}

    def test_bundled_recipes_have_templates(self):
        loader = RecipeLoader([find_recipe_definitions_path()])
        for recipe in loader.load_all():
            assert recipe.template_directory is not None
            assert recipe.template_directory.is_dir(), recipe.id

    def test_cluster_setting_uses_type_hint(self):
        recipe = RecipeLoader([find_recipe_definitions_path()]).load("AspNetAppEcsFargate")
        cluster = recipe.get_option_setting("ClusterName")
        assert cluster.type_hint == "ECSCluster"
        assert cluster.type == OptionSettingType.STRING
        assert isinstance(recipe.rules[0], FieldEqualsRule)


class TestRecipeLoader:
    """Loading from arbitrary search paths."""

    def test_recursive_search(self, tmp_path):
        write_recipe(tmp_path / "a" / "nested", cluster_recipe_data(id="Nested"))
        loader = RecipeLoader([tmp_path])
        assert [r.id for r in loader.load_all()] == ["Nested"]

    def test_malformed_recipe_skipped_with_warning(self, tmp_path, caplog):
        write_recipe(tmp_path, cluster_recipe_data())
        (tmp_path / "Broken.recipe").write_text("id: [unclosed", encoding="utf-8")
        (tmp_path / "MissingName.recipe").write_text("id: NoName\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            recipes = RecipeLoader([tmp_path]).load_all()

        assert [r.id for r in recipes] == ["WebAppOnEcs"]
        assert "Broken.recipe" in caplog.text
        assert "MissingName.recipe" in caplog.text

    def test_no_valid_recipe_is_loader_error(self, tmp_path):
        (tmp_path / "Broken.recipe").write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(RecipeLoaderError):
            RecipeLoader([tmp_path]).load_all()

    def test_missing_search_path_is_loader_error(self, tmp_path):
        with pytest.raises(RecipeLoaderError) as exc_info:
            RecipeLoader([tmp_path / "does-not-exist"]).load_all()
        assert "does-not-exist" in str(exc_info.value)

    def test_first_definition_of_id_and_version_wins(self, tmp_path):
        first = write_recipe(tmp_path / "first", cluster_recipe_data(name="First"))
        write_recipe(tmp_path / "second", cluster_recipe_data(name="Second"))
        recipes = RecipeLoader([tmp_path / "first", tmp_path / "second"]).load_all()
        assert len(recipes) == 1
        assert recipes[0].name == "First"
        assert recipes[0].recipe_path == first.resolve()

    def test_load_returns_highest_version(self, tmp_path):
        write_recipe(tmp_path / "v1", cluster_recipe_data(version="1.9.0"))
        write_recipe(tmp_path / "v2", cluster_recipe_data(version="1.10.0"))
        loader = RecipeLoader([tmp_path])
        assert loader.load("WebAppOnEcs").version == "1.10.0"
        assert loader.load("Unknown") is None

    def test_cache_and_clear_cache(self, tmp_path):
        write_recipe(tmp_path, cluster_recipe_data())
        loader = RecipeLoader([tmp_path])
        assert len(loader.load_all()) == 1

        write_recipe(tmp_path / "more", cluster_recipe_data(id="Another"))
        assert len(loader.load_all()) == 1
        loader.clear_cache()
        assert len(loader.load_all()) == 2


class TestRecipeValidation:
    """Structural checks applied when a recipe is created."""

    def test_unknown_dependency_rejected(self):
        data = cluster_recipe_data()
        data["option_settings"][3]["depends_on"] = [{"id": "Nope", "value": False}]
        with pytest.raises(ValueError, match="unknown setting"):
            create_recipe(data)

    def test_circular_dependencies_rejected(self):
        data = cluster_recipe_data(option_settings=[
            {"id": "A", "depends_on": [{"id": "B", "value": "x"}]},
            {"id": "B", "depends_on": [{"id": "A", "value": "y"}]},
        ])
        with pytest.raises(ValueError, match="circular"):
            create_recipe(data)

    def test_dependency_order_puts_parents_first(self):
        data = cluster_recipe_data(option_settings=[
            {"id": "Child", "depends_on": [{"id": "Parent", "value": True}]},
            {"id": "Parent", "type": "Bool", "default_value": True},
            {"id": "Other"},
        ])
        recipe = create_recipe(data)
        assert [s.id for s in recipe.dependency_order()] == ["Parent", "Child", "Other"]

    def test_yaml_float_version_coerced(self):
        recipe = create_recipe(cluster_recipe_data(version=1.0))
        assert recipe.version == "1.0"
