"""Product catalog for the mock backend"""

from typing import Optional

from storefront.models import Category, Product

# Sample catalog loaded by initializeShop. Prices are whole rupees.
SAMPLE_PRODUCTS: list[Product] = [
    Product(
        id="cmf-earbuds",
        name="CMF Buds by Nothing",
        description="Active noise cancellation up to 42dB, 35.5 hours of playback and Bluetooth 5.3 with dual device connection.",
        price=2499,
        stock=40,
        category=Category.ELECTRONICS,
    ),
    Product(
        id="smart-watch-pro",
        name="Smart Watch Pro",
        description="1.96 inch AMOLED display, Bluetooth calling, SpO2 and heart rate tracking, 7 day battery.",
        price=3999,
        stock=25,
        category=Category.ELECTRONICS,
    ),
    Product(
        id="portable-projector",
        name="Portable Mini Projector",
        description="Full HD support, 200 inch screen size and built-in speaker. Plug in any phone or laptop.",
        price=7499,
        stock=12,
        category=Category.ELECTRONICS,
    ),
    Product(
        id="magsafe-power-bank",
        name="Magnetic Power Bank 10000mAh",
        description="Snap-on wireless charging with a 20W USB-C port and a pocket-sized aluminium body.",
        price=1899,
        stock=0,
        category=Category.ELECTRONICS,
    ),
    Product(
        id="moon-lamp",
        name="3D Moon Lamp",
        description="Hand-finished lunar surface, 16 colours and a wooden stand. Touch and remote control.",
        price=1299,
        stock=30,
        category=Category.HOME_DECOR,
    ),
    Product(
        id="sunset-projection-lamp",
        name="Sunset Projection Lamp",
        description="Casts a warm golden-hour glow on any wall. 180 degree rotating head, USB powered.",
        price=899,
        stock=50,
        category=Category.HOME_DECOR,
    ),
    Product(
        id="macrame-wall-hanging",
        name="Macrame Wall Hanging",
        description="Handwoven cotton rope on a natural wood dowel. 60 x 90 cm, made in Jaipur.",
        price=1499,
        stock=15,
        category=Category.HOME_DECOR,
    ),
    Product(
        id="ceramic-planter-set",
        name="Ceramic Planter Set",
        description="Set of three matte-glazed planters with drainage holes and bamboo trays.",
        price=1799,
        stock=20,
        category=Category.HOME_DECOR,
    ),
]


class ProductDatabase:
    """In-memory product catalog"""

    def __init__(self):
        self.products: dict[str, Product] = {}

    def seed(self) -> int:
        """Load the sample catalog if the catalog is empty; returns products added"""
        if self.products:
            return 0
        for product in SAMPLE_PRODUCTS:
            self.products[product.id] = product.model_copy()
        return len(SAMPLE_PRODUCTS)

    def get_product(self, product_id: str, include_unpublished: bool = False) -> Optional[Product]:
        """Get a product by ID"""
        product = self.products.get(product_id)
        if product is None or (not product.published and not include_unpublished):
            return None
        return product

    def list_products(
        self,
        category: Optional[Category] = None,
        include_unpublished: bool = False,
    ) -> list[Product]:
        """Products in insertion order, optionally filtered by category"""
        results = list(self.products.values())

        if not include_unpublished:
            results = [p for p in results if p.published]

        if category:
            results = [p for p in results if p.category == category]

        return results

    def create_product(self, product: Product) -> bool:
        """Add a product; False when the id is taken"""
        if product.id in self.products:
            return False
        self.products[product.id] = product
        return True

    def update_product(self, product: Product) -> bool:
        """Replace a product; False when it does not exist"""
        if product.id not in self.products:
            return False
        self.products[product.id] = product
        return True

    def set_published(self, product_id: str, published: bool) -> bool:
        product = self.products.get(product_id)
        if not product:
            return False
        self.products[product_id] = product.model_copy(update={"published": published})
        return True

    def update_stock(self, product_id: str, quantity_change: int) -> bool:
        """
        Update product stock.

        Args:
            product_id: Product ID
            quantity_change: Amount to change (negative to decrease)

        Returns:
            True if successful
        """
        product = self.products.get(product_id)
        if not product:
            return False

        new_quantity = product.stock + quantity_change
        if new_quantity < 0:
            return False

        self.products[product_id] = product.model_copy(update={"stock": new_quantity})
        return True
