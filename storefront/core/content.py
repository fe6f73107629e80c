"""
Site content

Marketing copy and contact details shown across the storefront. Built once
at startup and handed to the app; instances are immutable.
"""

from pydantic import BaseModel


class _Frozen(BaseModel):
    class Config:
        frozen = True


class Brand(_Frozen):
    name: str


class Nav(_Frozen):
    home: str
    shop: str
    electronics: str
    homeDecor: str
    about: str
    login: str
    admin: str


class Hero(_Frozen):
    badge: str
    title: str
    titleAccent: str
    description: str
    ctaPrimary: str
    ctaSecondary: str
    imageAlt: str


class CategoryCard(_Frozen):
    title: str
    description: str
    cta: str
    imageAlt: str


class Categories(_Frozen):
    heading: str
    subheading: str
    electronics: CategoryCard
    homeDecor: CategoryCard


class Featured(_Frozen):
    heading: str
    subheading: str
    emptyMessage: str
    emptyMessageAdmin: str
    viewAllCta: str
    initializeButton: str


class Home(_Frozen):
    hero: Hero
    categories: Categories
    featured: Featured


class About(_Frozen):
    heading: str
    paragraphs: tuple[str, ...]


class LabeledValue(_Frozen):
    label: str
    value: str


class Contact(_Frozen):
    heading: str
    intro: str
    email: LabeledValue
    phone: LabeledValue
    address: LabeledValue


class Footer(_Frozen):
    brandBlurb: str
    contactBlurb: str
    copyrightTemplate: str
    quickLinksHeading: str

    def copyright(self, year: int, brand: str) -> str:
        return self.copyrightTemplate.format(year=year, brand=brand)


class SiteContent(_Frozen):
    brand: Brand
    nav: Nav
    home: Home
    about: About
    contact: Contact
    footer: Footer


DEFAULT_SITE_CONTENT = SiteContent(
    brand=Brand(name="The Lens"),
    nav=Nav(
        home="Home",
        shop="Shop",
        electronics="Electronics",
        homeDecor="Home Decor",
        about="About",
        login="Login",
        admin="Admin",
    ),
    home=Home(
        hero=Hero(
            badge="Trending Now",
            title="Discover What's",
            titleAccent="Trending Today",
            description=(
                "From cutting-edge electronics to stunning home decor, "
                "find the viral products everyone's talking about."
            ),
            ctaPrimary="Shop Now",
            ctaSecondary="Learn More",
            imageAlt="Trending Products",
        ),
        categories=Categories(
            heading="Shop by Category",
            subheading="Explore our curated collections",
            electronics=CategoryCard(
                title="Electronics",
                description="Latest gadgets and tech essentials",
                cta="Browse Electronics",
                imageAlt="Electronics",
            ),
            homeDecor=CategoryCard(
                title="Home Decor",
                description="Transform your space with style",
                cta="Browse Home Decor",
                imageAlt="Home Decor",
            ),
        ),
        featured=Featured(
            heading="Featured Products",
            subheading="Handpicked items just for you",
            emptyMessage="No products available yet. Check back soon!",
            emptyMessageAdmin="No products yet. Initialize the shop to add sample products.",
            viewAllCta="View All Products",
            initializeButton="Initialize Shop",
        ),
    ),
    about=About(
        heading="About The Lens",
        paragraphs=(
            "The Lens brings you the products everyone is talking about, "
            "from everyday tech to pieces that change how a room feels.",
            "Every item is picked by our team and shipped across India.",
        ),
    ),
    contact=Contact(
        heading="Contact Us",
        intro="Questions about an order or a product? We are happy to help.",
        email=LabeledValue(label="Email", value="support@thelens.in"),
        phone=LabeledValue(label="Phone", value="+91 98765 43210"),
        address=LabeledValue(label="Address", value="Bengaluru, Karnataka, India"),
    ),
    footer=Footer(
        brandBlurb="Trending electronics and home decor, curated for you.",
        contactBlurb="Reach us any day between 10am and 7pm IST.",
        copyrightTemplate="© {year} {brand}. All rights reserved.",
        quickLinksHeading="Quick Links",
    ),
)
