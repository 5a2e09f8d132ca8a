"""
Text normalization utilities for slugs and category ids
"""
import re
import unicodedata
from typing import Optional


def normalize_text(text: str) -> str:
    """
    Normalize text for consistency:
    - Remove extra whitespace
    - Convert to lowercase
    - Remove accents
    - Remove special characters
    """
    if not text:
        return ""

    # Normalize unicode
    text = unicodedata.normalize('NFKD', text)

    # Remove accents
    text = ''.join(char for char in text if not unicodedata.combining(char))

    # Convert to lowercase
    text = text.lower()

    # Remove extra whitespace
    text = ' '.join(text.split())

    # Remove special characters but keep alphanumeric and spaces
    text = re.sub(r'[^a-z0-9\s\-]', '', text)

    return text.strip()


def slugify(text: str) -> str:
    """
    URL-safe slug: "Mobile Phones & Tablets" -> "mobile-phones-tablets"
    """
    normalized = normalize_text(text)
    return re.sub(r'[\s\-]+', '-', normalized).strip('-')


def build_category_id(name: str, parent_name: Optional[str] = None, root_name: Optional[str] = None) -> str:
    """
    Deterministic, human-legible category id.

    Root categories use their own slug; descendants are prefixed with the
    root and immediate parent slugs so same-named leaves under different
    branches stay distinct:
        build_category_id("Phones", "Electronics", "Electronics") -> "electronics-phones"
        build_category_id("Android", "Phones", "Electronics") -> "electronics-phones-android"

    Collisions are not resolved here; inserting a duplicate id fails.
    """
    name_slug = slugify(name)
    if not name_slug:
        raise ValueError(f"Cannot derive a category id from name {name!r}")

    parts = []
    if root_name:
        parts.append(slugify(root_name))
    if parent_name and parent_name != root_name:
        parts.append(slugify(parent_name))
    parts.append(name_slug)
    return "-".join(part for part in parts if part)
