"""
Proposal templates: named, ordered sections with {variable} placeholders.

TemplateStore keeps templates for one generator instance. Given a
directory it loads every *.json file there, writing the default set
first when the directory does not exist yet.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger("bidbot.proposals.templates")

PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")
TEMPLATE_NAME_RE = re.compile(r"[A-Za-z0-9_-]{1,100}")


@dataclass
class ProposalTemplate:
    name: str
    language: str = "en"
    structure: dict[str, str] = field(default_factory=dict)  # section -> text, in order
    variables: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ProposalTemplate":
        structure = data.get("structure") or {}
        if not isinstance(structure, dict) or not structure:
            raise ValueError("Template structure must be a non-empty mapping")
        return cls(
            name=str(data.get("name") or ""),
            language=str(data.get("language") or "en"),
            structure={str(k): str(v) for k, v in structure.items()},
            variables=[str(v) for v in data.get("variables") or []],
        )


def build_proposal_from_template(template: ProposalTemplate, variables: dict[str, str]) -> str:
    """Fill {name} placeholders; unknown placeholders are left untouched."""
    def substitute(match: re.Match) -> str:
        name = match.group(1)
        return str(variables[name]) if name in variables else match.group(0)

    sections = [PLACEHOLDER_RE.sub(substitute, text) for text in template.structure.values()]
    return "\n\n".join(sections)


_WEB_VARIABLES = ["experience", "skills", "projectCount", "projectGoal", "relevantSkills", "estimatedTime"]

DEFAULT_TEMPLATES: dict[str, dict] = {
    "web_development": {
        "name": "Web Development",
        "language": "en",
        "structure": {
            "greeting": "Hi there!",
            "introduction": "I'm a professional web developer with {experience} years of experience.",
            "relevantExperience": (
                "I have extensive experience in {skills} and have successfully completed "
                "{projectCount} similar projects."
            ),
            "valueProposition": "I can help you {projectGoal} by leveraging my expertise in {relevantSkills}.",
            "timeline": "I can complete this project within {estimatedTime} while maintaining high quality standards.",
            "callToAction": (
                "I'd love to discuss your project in detail. Please feel free to message me to get started!"
            ),
            "closing": "Best regards",
        },
        "variables": _WEB_VARIABLES,
    },
    "web_development_uk": {
        "name": "Веб-розробка",
        "language": "uk",
        "structure": {
            "greeting": "Вітаю!",
            "introduction": "Я професійний веб-розробник з {experience} роками досвіду.",
            "relevantExperience": (
                "Маю великий досвід роботи з {skills} та успішно завершив {projectCount} подібних проектів."
            ),
            "valueProposition": "Можу допомогти вам {projectGoal}, використовуючи свій досвід у {relevantSkills}.",
            "timeline": (
                "Зможу завершити цей проект протягом {estimatedTime}, дотримуючись високих стандартів якості."
            ),
            "callToAction": "Буду радий обговорити ваш проект детальніше. Будь ласка, напишіть мені, щоб почати!",
            "closing": "З найкращими побаженнями",
        },
        "variables": _WEB_VARIABLES,
    },
    "mobile_development": {
        "name": "Mobile Development",
        "language": "en",
        "structure": {
            "greeting": "Hello!",
            "introduction": (
                "I'm a mobile app developer specializing in {platforms} with {experience} years of experience."
            ),
            "relevantExperience": "I've developed {appCount} mobile applications using {technologies}.",
            "valueProposition": (
                "I can create a high-quality {appType} app that meets your requirements "
                "and provides excellent user experience."
            ),
            "timeline": "The development timeline would be approximately {estimatedTime}.",
            "callToAction": "Let's discuss your app idea and how I can bring it to life!",
            "closing": "Looking forward to working with you",
        },
        "variables": ["platforms", "experience", "appCount", "technologies", "appType", "estimatedTime"],
    },
    "design": {
        "name": "Design",
        "language": "en",
        "structure": {
            "greeting": "Hi!",
            "introduction": "I'm a creative designer with {experience} years of experience in {designTypes}.",
            "relevantExperience": "My portfolio includes {portfolioHighlights} and I've worked with {clientTypes}.",
            "valueProposition": "I can create {deliverables} that will {designGoal} and enhance your brand presence.",
            "timeline": "I can deliver the final designs within {estimatedTime}.",
            "callToAction": "I'd love to show you my portfolio and discuss your design needs!",
            "closing": "Creative regards",
        },
        "variables": [
            "experience", "designTypes", "portfolioHighlights", "clientTypes",
            "deliverables", "designGoal", "estimatedTime",
        ],
    },
}

FALLBACK_TEMPLATE = {
    "name": "Default Template",
    "language": "en",
    "structure": {
        "greeting": "Hello!",
        "introduction": "I'm a professional freelancer with relevant experience.",
        "valueProposition": "I can help you achieve your project goals.",
        "callToAction": "Let's discuss your project!",
        "closing": "Best regards",
    },
    "variables": [],
}


class TemplateStore:
    """
    Proposal templates for one generator.

    Usage:
        store = TemplateStore(Path("data/templates"))
        store.load()
        template = store.get("design")
    """

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory) if directory else None
        self._templates: dict[str, ProposalTemplate] = {}

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, name: str) -> bool:
        return name in self._templates

    def load(self) -> int:
        """(Re)load templates; returns how many are available."""
        self._templates.clear()
        if self.directory is None:
            self.load_defaults()
            return len(self._templates)

        try:
            if not self.directory.exists():
                self.directory.mkdir(parents=True, exist_ok=True)
                self._write_defaults()

            for path in sorted(self.directory.glob("*.json")):
                try:
                    data = json.loads(path.read_text(encoding="utf-8"))
                    self._templates[path.stem] = ProposalTemplate.from_dict(data)
                except (json.JSONDecodeError, ValueError) as e:
                    logger.warning(f"Skipping invalid template {path.name}: {e}")

            logger.info(f"Loaded {len(self._templates)} proposal templates")
        except OSError as e:
            logger.error(f"Failed to load templates: {e}")
            self._templates["default"] = ProposalTemplate.from_dict(FALLBACK_TEMPLATE)

        return len(self._templates)

    def load_defaults(self):
        for key, data in DEFAULT_TEMPLATES.items():
            self._templates[key] = ProposalTemplate.from_dict(data)
        self._templates["default"] = ProposalTemplate.from_dict(FALLBACK_TEMPLATE)

    def _write_defaults(self):
        for key, data in DEFAULT_TEMPLATES.items():
            path = self.directory / f"{key}.json"
            path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def resolve(self, name: Optional[str]) -> Optional[tuple[str, ProposalTemplate]]:
        """(key, template): named template, else 'default', else any loaded one."""
        if name and name in self._templates:
            return name, self._templates[name]
        if "default" in self._templates:
            return "default", self._templates["default"]
        return next(iter(self._templates.items()), None)

    def get(self, name: Optional[str]) -> Optional[ProposalTemplate]:
        resolved = self.resolve(name)
        return resolved[1] if resolved else None

    def add(self, name: str, data: dict) -> bool:
        if not TEMPLATE_NAME_RE.fullmatch(name or ""):
            logger.error(f"Invalid template name: {name!r}")
            return False
        try:
            template = ProposalTemplate.from_dict(data)
        except ValueError as e:
            logger.error(f"Failed to add custom template '{name}': {e}")
            return False

        self._templates[name] = template
        if self.directory is not None:
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
                path = self.directory / f"{name}.json"
                path.write_text(json.dumps(template.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
            except OSError as e:
                logger.error(f"Failed to save custom template '{name}': {e}")
                return False

        logger.info(f"Custom template '{name}' added successfully")
        return True

    def available(self) -> list[dict]:
        return [
            {"key": key, "name": t.name, "language": t.language, "variables": t.variables}
            for key, t in self._templates.items()
        ]
