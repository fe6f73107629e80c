"""
Public asset URLs

Builds URLs for files under the public directory that work both at the site
root and when the storefront is served under a canister path
(`/<canister-id>/...`).
"""

import re
from typing import Optional
from urllib.parse import quote

# Product id -> image files under assets/products/<folder>/
PRODUCT_IMAGES: dict[str, tuple[str, list[str]]] = {
    "cmf-earbuds": (
        "cmf-cc-earbuds",
        [
            "cmf 1-2.webp",
            "cmf 2-1.webp",
            "cmf 7-1.webp",
            "cmf 1-1.webp",
            "cmf 6-1.webp",
        ],
    ),
}


def looks_like_canister_id(segment: str) -> bool:
    """Canister ids are long hyphen-separated base32 groups, usually ending in -cai"""
    return (segment.count("-") >= 2 and len(segment) > 15) or segment.endswith("-cai")


def resolve_base_path(pathname: str, configured: Optional[str] = None) -> str:
    """
    Base path the app is served from, always with surrounding slashes.

    A configured base path wins; otherwise a canister-like first path segment
    is treated as the base; otherwise the root.
    """
    if configured and configured != "/":
        return "/" + configured.strip("/") + "/"

    parts = [part for part in pathname.split("/") if part]
    if parts and looks_like_canister_id(parts[0]):
        return f"/{parts[0]}/"

    return "/"


def public_asset_url(relative_path: str, base_path: str = "/") -> str:
    """URL of a public file; each path segment is percent-encoded"""
    encoded = "/".join(quote(segment, safe="") for segment in relative_path.split("/"))
    full_path = base_path.rstrip("/") + "/" + encoded.lstrip("/")
    return re.sub(r"/{2,}", "/", full_path)


def generated_image_url(filename: str, base_path: str = "/") -> str:
    return public_asset_url(f"assets/generated/{filename}", base_path)


def product_image_url(folder: str, filename: str, base_path: str = "/") -> str:
    return public_asset_url(f"assets/products/{folder}/{filename}", base_path)


def get_product_images(product_id_or_name: str, base_path: str = "/") -> list[str]:
    """Images for a product, matching the id exactly first, then by substring"""
    normalized = product_id_or_name.lower().strip()

    match = PRODUCT_IMAGES.get(normalized)
    if match is None:
        match = next(
            (
                images
                for key, images in PRODUCT_IMAGES.items()
                if normalized and (key in normalized or normalized in key)
            ),
            None,
        )

    if match is None:
        return []

    folder, filenames = match
    return [product_image_url(folder, filename, base_path) for filename in filenames]


def get_primary_product_image(product_id_or_name: str, base_path: str = "/") -> Optional[str]:
    images = get_product_images(product_id_or_name, base_path)
    return images[0] if images else None
