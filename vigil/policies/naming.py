"""
Naming conventions used to map resource references to policy names.

Symbolic names are converted to class-style names (``"blog_posts"`` ->
``"BlogPost"``).
"""

from __future__ import annotations

import re

# (pattern, replacement) pairs, tried in order; first match wins
_SINGULAR_RULES: list[tuple[str, str]] = [
    (r"(?i)(quiz)zes$", r"\1"),
    (r"(?i)(matri)ces$", r"\1x"),
    (r"(?i)(vert|ind)ices$", r"\1ex"),
    (r"(?i)(alias|status)(es)?$", r"\1"),
    (r"(?i)(octop|vir)(us|i)$", r"\1us"),
    (r"(?i)(cris|ax|test)es$", r"\1is"),
    (r"(?i)(shoe)s$", r"\1"),
    (r"(?i)(o)es$", r"\1"),
    (r"(?i)(bus)(es)?$", r"\1"),
    (r"(?i)(m|l)ice$", r"\1ouse"),
    (r"(?i)(x|ch|ss|sh)es$", r"\1"),
    (r"(?i)(m)ovies$", r"\1ovie"),
    (r"(?i)(s)eries$", r"\1eries"),
    (r"(?i)([^aeiouy]|qu)ies$", r"\1y"),
    (r"(?i)([lr])ves$", r"\1f"),
    (r"(?i)(tive)s$", r"\1"),
    (r"(?i)(hive)s$", r"\1"),
    (r"(?i)([^f])ves$", r"\1fe"),
    (r"(?i)(^analy)(sis|ses)$", r"\1sis"),
    (r"(?i)((a)naly|(b)a|(d)iagno|(p)arenthe|(p)rogno|(s)ynop|(t)he)(sis|ses)$", r"\1sis"),
    (r"(?i)([ti])a$", r"\1um"),
    (r"(?i)(n)ews$", r"\1ews"),
    (r"(?i)(ss)$", r"\1"),
    (r"(?i)s$", ""),
]

_IRREGULAR_SINGULARS: dict[str, str] = {
    "people": "person",
    "men": "man",
    "women": "woman",
    "children": "child",
    "sexes": "sex",
    "moves": "move",
    "zombies": "zombie",
}

_UNCOUNTABLE: frozenset[str] = frozenset(
    {"equipment", "information", "rice", "money", "species", "series", "fish", "sheep", "jeans", "police", "data"}
)


def singularize(word: str) -> str:
    """
    Return the singular form of an English noun.

    Only the last underscore-separated segment is inflected, so compound
    names keep their prefix.

    Example:
        >>> singularize("posts")
        'post'
        >>> singularize("blog_categories")
        'blog_category'
    """
    head, sep, last = word.rpartition("_")
    lowered = last.lower()

    if not lowered or lowered in _UNCOUNTABLE:
        return word

    if lowered in _IRREGULAR_SINGULARS:
        singular = _IRREGULAR_SINGULARS[lowered]
        # Preserve the leading capital, if any
        singular = last[0] + singular[1:]
        return f"{head}{sep}{singular}"

    for pattern, replacement in _SINGULAR_RULES:
        if re.search(pattern, last):
            return f"{head}{sep}{re.sub(pattern, replacement, last)}"
    return word


def camelize(word: str) -> str:
    """
    Convert snake_case to CamelCase.

    Example:
        >>> camelize("blog_post")
        'BlogPost'
    """
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[_\s]+", word) if part)


def classify(name: str) -> str:
    """
    Convert a symbolic (table-like) name to a class name.

    Example:
        >>> classify("posts")
        'Post'
        >>> classify("blog_posts")
        'BlogPost'
    """
    # Strip any dotted prefix ("app.posts" -> "posts")
    name = name.rsplit(".", 1)[-1]
    return camelize(singularize(name))
