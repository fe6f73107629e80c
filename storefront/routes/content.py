"""Site content routes"""

from datetime import date

from fastapi import APIRouter, Depends, Request

from .deps import get_base_path
from ..utils.assets import generated_image_url

router = APIRouter(prefix="/api/content", tags=["Content"])


@router.get("")
async def get_content(request: Request, base_path: str = Depends(get_base_path)):
    """Copy for every page, with the footer year filled in"""
    content = request.app.state.content
    return {
        **content.model_dump(),
        "copyright": content.footer.copyright(date.today().year, content.brand.name),
        "base_path": base_path,
        "images": {
            "logo": generated_image_url("the-lens-logo.dim_512x512.png", base_path),
            "hero": generated_image_url("the-lens-hero.dim_1600x600.png", base_path),
            "electronics": generated_image_url("the-lens-category-electronics.dim_800x800.png", base_path),
            "homeDecor": generated_image_url("the-lens-category-home-decor.dim_800x800.png", base_path),
        },
    }
