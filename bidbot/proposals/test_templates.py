import json
import tempfile
import unittest
from pathlib import Path

from bidbot.projects import Project
from bidbot.proposals.rules import estimate_project_time, extract_variables, select_template_name
from bidbot.proposals.templates import (
    DEFAULT_TEMPLATES,
    ProposalTemplate,
    TemplateStore,
    build_proposal_from_template,
)


class TemplateSubstitutionTests(unittest.TestCase):
    def test_known_placeholders_replaced_unknown_kept(self):
        template = ProposalTemplate(
            name="t",
            structure={"greeting": "Hi {name}!", "body": "Skills: {skills}. Budget: {budget}"},
        )
        text = build_proposal_from_template(template, {"name": "Ann", "skills": "React"})
        self.assertEqual(text, "Hi Ann!\n\nSkills: React. Budget: {budget}")

    def test_substitution_is_idempotent(self):
        template = ProposalTemplate.from_dict(DEFAULT_TEMPLATES["web_development"])
        project = Project(id="1", platform="upwork", title="Build a React site",
                          description="Create a web shop", skills=["React"])
        variables = extract_variables(project, {"skills": ["React", "Node"]})
        first = build_proposal_from_template(template, variables)
        second = build_proposal_from_template(template, variables)
        self.assertEqual(first, second)
        self.assertNotIn("{", first)

    def test_empty_structure_rejected(self):
        with self.assertRaises(ValueError):
            ProposalTemplate.from_dict({"name": "empty", "structure": {}})


class TemplateRuleTests(unittest.TestCase):
    def test_template_selection(self):
        mobile = Project(id="1", platform="upwork", title="iOS app for fitness")
        design = Project(id="2", platform="upwork", title="Logo", description="graphic work")
        web = Project(id="3", platform="upwork", title="Landing page", skills=["WordPress"])
        self.assertEqual(select_template_name(mobile), "mobile_development")
        self.assertEqual(select_template_name(design), "design")
        self.assertEqual(select_template_name(web), "web_development")
        self.assertEqual(select_template_name(web, "uk"), "web_development_uk")

    def test_time_estimates(self):
        self.assertEqual(estimate_project_time(Project(id="1", platform="upwork", normalized_budget=8000)), "4-6 weeks")
        self.assertEqual(estimate_project_time(Project(id="2", platform="upwork", description="x" * 600)), "2-3 weeks")
        self.assertEqual(estimate_project_time(Project(id="3", platform="upwork")), "1-2 weeks")

    def test_profile_defaults(self):
        variables = extract_variables(Project(id="1", platform="upwork"), {})
        self.assertEqual(variables["experience"], "5+")
        self.assertEqual(variables["skills"], "various technologies")
        self.assertEqual(variables["platforms"], "iOS and Android")
        self.assertEqual(variables["projectGoal"], "achieve your project objectives")


class TemplateStoreTests(unittest.TestCase):
    def test_defaults_without_directory(self):
        store = TemplateStore()
        self.assertEqual(store.load(), len(DEFAULT_TEMPLATES) + 1)
        self.assertIn("default", store)
        self.assertEqual(store.get("missing").name, "Default Template")

    def test_missing_directory_is_seeded_with_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            directory = Path(tmp) / "templates"
            store = TemplateStore(directory)
            self.assertEqual(store.load(), len(DEFAULT_TEMPLATES))
            self.assertTrue((directory / "design.json").exists())

    def test_invalid_files_skipped_and_custom_templates_saved(self):
        with tempfile.TemporaryDirectory() as tmp:
            directory = Path(tmp)
            (directory / "broken.json").write_text("{not json", encoding="utf-8")
            (directory / "short.json").write_text(
                json.dumps({"name": "Short", "structure": {"body": "Hello {skills}"}}), encoding="utf-8")
            store = TemplateStore(directory)
            self.assertEqual(store.load(), 1)
            self.assertNotIn("broken", store)

            self.assertTrue(store.add("custom_1", {"name": "Custom", "structure": {"a": "b"}}))
            self.assertTrue((directory / "custom_1.json").exists())
            self.assertFalse(store.add("../escape", {"name": "x", "structure": {"a": "b"}}))
            # no 'default' in this directory, so an unknown name returns the first template
            self.assertEqual(store.get("nope").name, "Short")


if __name__ == "__main__":
    unittest.main()
