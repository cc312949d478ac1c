#!/usr/bin/env python3
"""
Dictionary data check script.

This script reads the index files of a local dictionary checkout and
verifies that every page they point to exists in the dictionary's page
scheme, and optionally that the page image is present.

Usage:
    python scripts/check_dict.py <repo-dir> [--catalog ./data/dicts.json] [--images]
"""

import argparse
import json
import sys
from pathlib import Path

# Add the app directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.data.provider import INDEX_FILES, parse_catalog
from app.data.session import flatten_toc
from app.models.dictionary import PageScheme, TocEntry
from app.search.keyword import Category
from app.utils.errors import InvalidPage
from app.utils.pages import image_path, pad_page, parse_page, segment_config


def load_scheme(catalog_path: Path, repo: str) -> PageScheme:
    """
    Find the page scheme of a dictionary in the catalog.

    Falls back to the default scheme when the catalog has no entry.
    """
    if not catalog_path.exists():
        print(f"Catalog not found at {catalog_path}, using default page scheme")
        return PageScheme()

    catalog = parse_catalog(json.loads(catalog_path.read_text(encoding="utf-8")))
    for config in catalog.dicts:
        if config.repo == repo:
            return config.pages

    print(f"{repo} not in catalog, using default page scheme")
    return PageScheme()


def load_terms(data_dir: Path, category: Category) -> dict | None:
    """
    Load one index file as a term mapping.

    Args:
        data_dir: Directory holding the index files
        category: Which index to load

    Returns:
        Term mapping, or None if the file is missing
    """
    path = data_dir / INDEX_FILES[category]
    if not path.exists():
        print(f"  Missing index file: {path}")
        return None

    raw = json.loads(path.read_text(encoding="utf-8"))
    if category is Category.TOC:
        return flatten_toc([TocEntry.model_validate(item) for item in raw])
    return raw


def check_pages(
    scheme: PageScheme,
    terms: dict,
    repo_dir: Path | None = None,
) -> dict:
    """
    Check every page referenced by a term mapping.

    Args:
        scheme: Page layout of the dictionary
        terms: Term -> page or list of pages
        repo_dir: If given, also check that each page image exists

    Returns:
        Dictionary with check statistics and the first problems found
    """
    stats = {
        "terms": len(terms),
        "pages": 0,
        "invalid": 0,
        "out_of_range": 0,
        "missing_images": 0,
        "problems": [],
    }

    seen: set[str] = set()
    for term, value in terms.items():
        for page in value if isinstance(value, list) else [value]:
            page = pad_page(page)
            stats["pages"] += 1

            try:
                segment, number = parse_page(scheme, page)
            except InvalidPage:
                stats["invalid"] += 1
                stats["problems"].append(f"{term}: invalid page {page}")
                continue

            if number > segment_config(scheme, segment).count:
                stats["out_of_range"] += 1
                stats["problems"].append(f"{term}: page {page} beyond last {segment.value} page")
                continue

            if repo_dir is not None and page not in seen:
                seen.add(page)
                if not (repo_dir / image_path(scheme, page)).exists():
                    stats["missing_images"] += 1
                    stats["problems"].append(f"{term}: no image for page {page}")

    return stats


def check_dict(repo_dir: str, catalog: str, data_path: str = "docs/data", images: bool = False) -> dict:
    """
    Check all index files of a local dictionary checkout.

    Args:
        repo_dir: Path to the dictionary repository
        catalog: Path to dicts.json
        data_path: Path of the index files inside the repository
        images: Whether to check that page images exist

    Returns:
        Dictionary of per-category statistics
    """
    repo_path = Path(repo_dir)
    if not repo_path.exists():
        raise FileNotFoundError(f"Dictionary directory not found: {repo_path}")

    scheme = load_scheme(Path(catalog), repo_path.name)
    print(f"Page scheme: {scheme.header_pages} header, {scheme.content.count} content, "
          f"{scheme.footer.count} footer pages")

    report = {}
    for category in Category:
        print(f"\nChecking {category.value}...")
        terms = load_terms(repo_path / data_path, category)
        if terms is None:
            continue

        stats = check_pages(scheme, terms, repo_path if images else None)
        report[category.value] = stats

        print(f"  Terms: {stats['terms']}")
        print(f"  Pages referenced: {stats['pages']}")
        print(f"  Invalid: {stats['invalid']}")
        print(f"  Out of range: {stats['out_of_range']}")
        if images:
            print(f"  Missing images: {stats['missing_images']}")
        for problem in stats["problems"][:10]:
            print(f"    {problem}")

    return report


def main():
    """Main entry point for the check script."""
    parser = argparse.ArgumentParser(
        description="Check the index files of a local dictionary checkout"
    )
    parser.add_argument(
        "repo_dir",
        help="Dictionary repository directory (its name is looked up in the catalog)"
    )
    parser.add_argument(
        "--catalog",
        default="./data/dicts.json",
        help="Dictionary catalog (default: ./data/dicts.json)"
    )
    parser.add_argument(
        "--data-path",
        default="docs/data",
        help="Index directory inside the repository (default: docs/data)"
    )
    parser.add_argument(
        "--images",
        action="store_true",
        help="Also check that every referenced page image exists"
    )

    args = parser.parse_args()

    try:
        report = check_dict(args.repo_dir, args.catalog, args.data_path, args.images)
    except Exception as e:
        print(f"Error: {e}")
        return 1

    problems = sum(len(s["problems"]) for s in report.values())
    print(f"\nCheck complete: {problems} problem(s)")
    return 1 if problems else 0


if __name__ == "__main__":
    sys.exit(main())
