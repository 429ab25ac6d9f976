"""
Prompt templates for LLM proposal generation.

Prompts are built by functions so the project and profile data are
rendered per request. Unknown languages fall back to English.
"""
from __future__ import annotations

from ..projects import Project

PROPOSAL_SYSTEM = (
    "You are a professional freelancer writing compelling project proposals. "
    "Write in a professional, confident tone that highlights relevant experience "
    "and provides clear value proposition."
)

_PROPOSAL_PROMPTS = {
    "en": """Write a professional freelance proposal for the following project:

Project Title: {title}
Project Description: {description}
Budget: {budget}
Client Rating: {client_rating}

My Profile:
Name: {name}
Skills: {skills}
Experience: {experience}
Portfolio: {portfolio}
Relevant Experience: {relevant_experience}
Estimated Hours: {estimated_hours}

Requirements:
- Keep it concise (under 200 words)
- Highlight relevant experience
- Include a clear call to action
- Be professional and confident
- Don't mention specific rates unless asked""",
    "uk": """Напишіть професійну пропозицію для наступного проекту:

Назва проекту: {title}
Опис проекту: {description}
Бюджет: {budget}
Рейтинг клієнта: {client_rating}

Мій профіль:
Ім'я: {name}
Навички: {skills}
Досвід: {experience}
Портфоліо: {portfolio}
Відповідний досвід: {relevant_experience}
Орієнтовна кількість годин: {estimated_hours}

Вимоги:
- Стисло (до 200 слів)
- Підкресліть відповідний досвід
- Включіть чіткий заклик до дії
- Будьте професійними та впевненими
- Не згадуйте конкретні ставки, якщо не запитують""",
}

_FALLBACKS = {
    "en": {
        "budget": "Not specified",
        "client_rating": "Not available",
        "name": "Professional Freelancer",
        "skills": "Web Development, Programming",
        "experience": "5+ years",
        "portfolio": "Available upon request",
    },
    "uk": {
        "budget": "Не вказано",
        "client_rating": "Недоступно",
        "name": "Професійний фрілансер",
        "skills": "Веб-розробка, Програмування",
        "experience": "5+ років",
        "portfolio": "Доступне за запитом",
    },
}


def get_proposal_system(custom_prompt: str = "") -> str:
    if custom_prompt:
        return f"{PROPOSAL_SYSTEM}\n\nAdditional instructions from the freelancer:\n{custom_prompt}"
    return PROPOSAL_SYSTEM


def get_proposal_prompt(project: Project, profile: dict, language: str = "en") -> str:
    lang = language if language in _PROPOSAL_PROMPTS else "en"
    fallback = _FALLBACKS[lang]
    skills = profile.get("skills") or []

    return _PROPOSAL_PROMPTS[lang].format(
        title=project.title,
        description=(project.description or "")[:3000],
        budget=project.budget or fallback["budget"],
        client_rating=project.client.rating or fallback["client_rating"],
        name=profile.get("name") or fallback["name"],
        skills=", ".join(skills) if skills else fallback["skills"],
        experience=profile.get("experience") or fallback["experience"],
        portfolio=profile.get("portfolio") or fallback["portfolio"],
        relevant_experience=profile.get("relevant_experience") or profile.get("experience") or fallback["experience"],
        estimated_hours=profile.get("estimated_hours", ""),
    )
