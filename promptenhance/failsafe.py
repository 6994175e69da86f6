"""Canned documentation used when the documentation service yields nothing."""

from __future__ import annotations

from typing import Callable, Dict, Mapping, Sequence

from .analysis.rules import RetrieverRules

FALLBACK_TAG = "fallback"


def build_fallback_documentation(
    prompt: str, rules: RetrieverRules | None = None
) -> Dict[str, str]:
    """Return best-practice text keyed by topic for the domains the prompt touches.

    Always returns at least one entry; prompts matching no domain receive the
    general programming guidance.
    """
    triggers: Mapping[str, Sequence[str]] = (rules or RetrieverRules()).fallback_triggers
    lowered = (prompt or "").lower()
    documents: Dict[str, str] = {}
    for topic, words in triggers.items():
        if any(word in lowered for word in words):
            builder = _TOPIC_BUILDERS.get(topic)
            if builder is not None:
                documents[topic] = builder()
    if not documents:
        documents["general"] = _general_docs()
    return documents


def _markup_docs() -> str:
    return (
        "## HTML Best Practices\n\n"
        "### Semantic HTML\n"
        "- Use semantic elements like <header>, <nav>, <main>, <section>, <article>, <aside>, <footer>\n"
        "- Semantic structure improves accessibility and SEO\n\n"
        "### Modern HTML Structure\n"
        "```html\n"
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '    <meta charset="UTF-8">\n'
        '    <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        "    <title>Page Title</title>\n"
        "</head>\n"
        "<body>\n"
        "    <!-- Your content here -->\n"
        "</body>\n"
        "</html>\n"
        "```\n\n"
        "### Accessibility\n"
        "- Always include alt text for images\n"
        "- Use a proper heading hierarchy (h1, h2, h3...)\n"
        "- Ensure sufficient color contrast\n"
        "- Make interactive elements keyboard accessible"
    )


def _styling_docs() -> str:
    return (
        "## CSS Best Practices\n\n"
        "### Modern CSS Layout\n"
        "- Use CSS Grid for page-level layouts\n"
        "- Use Flexbox for component layouts\n"
        "- Use CSS custom properties (variables) for theming\n\n"
        "### Responsive Design\n"
        "```css\n"
        ".container {\n"
        "    display: grid;\n"
        "    grid-template-columns: repeat(auto-fit, minmax(300px, 1fr));\n"
        "    gap: 1rem;\n"
        "}\n\n"
        "@media (max-width: 768px) {\n"
        "    .container {\n"
        "        grid-template-columns: 1fr;\n"
        "    }\n"
        "}\n"
        "```\n\n"
        "### Performance\n"
        "- Prefer transforms over changing layout properties\n"
        "- Minimise reflows and repaints\n"
        "- Use CSS containment where possible"
    )


def _scripting_docs() -> str:
    return (
        "## JavaScript/TypeScript Best Practices\n\n"
        "### Modern JavaScript\n"
        "- Use const/let instead of var\n"
        "- Use arrow functions for short callbacks\n"
        "- Use template literals for string interpolation\n"
        "- Use destructuring for object and array assignment\n\n"
        "### TypeScript Benefits\n"
        "- Type safety catches errors at compile time\n"
        "- Type annotations document intent\n"
        "- Refactoring is safer with type checking\n\n"
        "### Example TypeScript Function\n"
        "```typescript\n"
        "interface User {\n"
        "    id: number;\n"
        "    name: string;\n"
        "    email: string;\n"
        "}\n\n"
        "function createUser(userData: Partial<User>): User {\n"
        "    return {\n"
        "        id: Date.now(),\n"
        "        name: userData.name || 'Anonymous',\n"
        "        email: userData.email || ''\n"
        "    };\n"
        "}\n"
        "```"
    )


def _general_docs() -> str:
    return (
        "## General Programming Best Practices\n\n"
        "### Code Quality\n"
        "- Write clean, readable code\n"
        "- Use meaningful variable and function names\n"
        "- Keep functions small and focused\n"
        "- Follow a consistent coding style\n\n"
        "### Error Handling\n"
        "- Handle expected failures explicitly\n"
        "- Provide meaningful error messages\n"
        "- Log errors with enough context to debug them\n\n"
        "### Performance\n"
        "- Optimise for readability first, then measure\n"
        "- Use appropriate data structures\n"
        "- Avoid premature optimisation"
    )


_TOPIC_BUILDERS: Dict[str, Callable[[], str]] = {
    "markup": _markup_docs,
    "styling": _styling_docs,
    "scripting": _scripting_docs,
    "general": _general_docs,
}


__all__ = ["FALLBACK_TAG", "build_fallback_documentation"]
