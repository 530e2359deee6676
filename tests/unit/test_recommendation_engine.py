"""
RecommendationEngine Unit Tests

Rule evaluation over project facts and the deterministic ranking of the
qualifying recipes.
"""

import threading
import time
from unittest.mock import patch

import pytest

from deploy_orchestration.exceptions import FailedToGenerateAnyRecommendations
from deploy_orchestration.project import ProjectDefinition, SystemCapabilities
from deploy_orchestration.recipes import ProjectFacts, create_recipe
from deploy_orchestration.recommendations import RecommendationEngine, rank_recommendations


def make_recipe(recipe_id, priority=0, name=None, rules=None):
    return create_recipe({
        "id": recipe_id,
        "name": name or recipe_id,
        "priority": priority,
        "rules": rules or [],
    })


@pytest.fixture
def web_project(tmp_path):
    return ProjectDefinition(
        project_path=tmp_path / "App" / "App.csproj",
        assembly_name="App",
        target_framework="net6.0",
        sdk_type="Microsoft.NET.Sdk.Web",
        properties={"OutputType": "Exe"},
        dependencies=frozenset({"AWSSDK.S3"}),
        project_files=frozenset({"App.csproj", "Dockerfile"}),
    )


@pytest.fixture
def capabilities():
    return SystemCapabilities(node_js_installed=True, docker_installed=True, docker_container_type="Linux")


@pytest.fixture
def engine():
    return RecommendationEngine(max_workers=4)


class TestRanking:
    """Priority descending, then name ascending."""

    def test_higher_priority_first(self, engine, web_project, capabilities):
        catalog = [make_recipe("A", priority=10), make_recipe("B", priority=20)]
        result = engine.generate_recommendations(web_project, capabilities, catalog)
        assert [r.recipe.id for r in result] == ["B", "A"]

    def test_ties_broken_by_name(self, engine, web_project, capabilities):
        catalog = [
            make_recipe("3", priority=5, name="Zeta"),
            make_recipe("1", priority=5, name="Alpha"),
            make_recipe("2", priority=5, name="Mu"),
        ]
        for _ in range(5):
            result = engine.generate_recommendations(web_project, capabilities, list(reversed(catalog)))
            assert [r.name for r in result] == ["Alpha", "Mu", "Zeta"]

    def test_name_comparison_is_ordinal(self, engine, web_project, capabilities):
        catalog = [make_recipe("x", name="beta"), make_recipe("y", name="Beta")]
        result = engine.generate_recommendations(web_project, capabilities, catalog)
        assert [r.name for r in result] == ["Beta", "beta"]

    def test_rank_recommendations_is_stable_for_input_order(self, engine, web_project, capabilities):
        catalog = [make_recipe("A", priority=1), make_recipe("B", priority=2)]
        result = engine.generate_recommendations(web_project, capabilities, catalog)
        assert rank_recommendations(reversed(result)) == result


class TestRules:
    """Each rule kind over the project fact table."""

    def test_no_qualifying_recipe_raises(self, engine, web_project, capabilities):
        catalog = [make_recipe("Console", rules=[
            {"type": "field-equals", "field": "sdk_type", "values": ["Microsoft.NET.Sdk"]},
        ])]
        with pytest.raises(FailedToGenerateAnyRecommendations):
            engine.generate_recommendations(web_project, capabilities, catalog)

    def test_empty_catalog_raises(self, engine, web_project, capabilities):
        with pytest.raises(FailedToGenerateAnyRecommendations):
            engine.generate_recommendations(web_project, capabilities, [])

    def test_all_rules_must_pass(self, engine, web_project, capabilities):
        catalog = [
            make_recipe("Both", rules=[
                {"type": "field-equals", "field": "sdk_type", "values": ["microsoft.net.sdk.web"]},
                {"type": "file-exists", "path": "Dockerfile"},
            ]),
            make_recipe("OneFails", rules=[
                {"type": "field-equals", "field": "sdk_type", "values": ["Microsoft.NET.Sdk.Web"]},
                {"type": "file-exists", "path": "serverless.template"},
            ]),
        ]
        result = engine.generate_recommendations(web_project, capabilities, catalog)
        assert [r.recipe.id for r in result] == ["Both"]

    def test_field_range_on_target_framework(self, web_project, capabilities):
        facts = ProjectFacts(web_project, capabilities)
        in_range = make_recipe("r1", rules=[{"type": "field-range", "field": "target_framework",
                                             "min": "netcoreapp3.1", "max": "net7.0"}])
        too_new = make_recipe("r2", rules=[{"type": "field-range", "field": "target_framework",
                                            "min": "net7.0"}])
        assert in_range.rules[0].evaluate(facts)
        assert not too_new.rules[0].evaluate(facts)

    def test_property_dependency_and_capability_rules(self, web_project, capabilities):
        facts = ProjectFacts(web_project, capabilities)
        recipe = make_recipe("r", rules=[
            {"type": "field-equals", "field": "property.OutputType", "values": ["Exe"]},
            {"type": "dependency-present", "name": "awssdk.s3"},
            {"type": "capability-present", "capability": "docker-linux"},
            {"type": "capability-present", "capability": "nodejs"},
        ])
        assert all(rule.evaluate(facts) for rule in recipe.rules)

    def test_negated_rule(self, web_project, capabilities):
        facts = ProjectFacts(web_project, capabilities)
        recipe = make_recipe("r", rules=[{"type": "file-exists", "path": "Dockerfile", "negate": True}])
        assert not recipe.rules[0].evaluate(facts)

    def test_missing_capability(self, engine, web_project):
        catalog = [make_recipe("NeedsDocker", rules=[{"type": "capability-present", "capability": "docker"}])]
        with pytest.raises(FailedToGenerateAnyRecommendations):
            engine.generate_recommendations(web_project, SystemCapabilities(), catalog)

    def test_unknown_rule_type_rejected(self):
        with pytest.raises(ValueError):
            make_recipe("r", rules=[{"type": "eval", "expression": "True"}])


class TestConcurrency:
    """Rules run on worker threads and ranking waits for all of them."""

    def test_rules_evaluated_on_worker_threads(self, engine, web_project, capabilities):
        catalog = [make_recipe("A", priority=30), make_recipe("B", priority=20), make_recipe("C", priority=10)]
        evaluate = RecommendationEngine._evaluate
        # Every evaluation waits for the others, so a sequential run would break the barrier
        barrier = threading.Barrier(len(catalog), timeout=5)
        thread_names = []
        finished = []

        def concurrent_evaluate(recipe, facts, project_definition):
            thread_names.append(threading.current_thread().name)
            barrier.wait()
            # The highest priority recipe finishes last
            if recipe.id == "A":
                time.sleep(0.2)
            result = evaluate(recipe, facts, project_definition)
            finished.append(recipe.id)
            return result

        def rank_after_join(recommendations):
            recommendations = list(recommendations)
            assert sorted(finished) == ["A", "B", "C"]
            return rank_recommendations(recommendations)

        with patch.object(RecommendationEngine, "_evaluate", side_effect=concurrent_evaluate), \
                patch("deploy_orchestration.recommendations.engine.rank_recommendations",
                      side_effect=rank_after_join) as rank:
            result = engine.generate_recommendations(web_project, capabilities, catalog)

        rank.assert_called_once()
        assert [r.recipe.id for r in result] == ["A", "B", "C"]
        assert len(thread_names) == 3
        assert all(name.startswith("recipe-rules") for name in thread_names)
        assert threading.current_thread().name not in thread_names
