# Presentation and error helpers

from .currency import format_inr
from .assets import public_asset_url, resolve_base_path, get_product_images

__all__ = ["format_inr", "public_asset_url", "resolve_base_path", "get_product_images"]
