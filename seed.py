import logging
from typing import Optional

from carts import CartStore
from catalog import CatalogStore

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    {
        "title": "MacBook Pro 16",
        "description": "Apple professional laptop with M3 Pro chip, 18GB RAM and 512GB SSD.",
        "code": "APPLE-MBP-001",
        "price": 2499.99,
        "status": True,
        "stock": 15,
        "category": "Laptops",
        "thumbnails": ["macbook-pro-space-black.jpg", "macbook-pro-silver.jpg"],
    },
    {
        "title": "Samsung Galaxy S24 Ultra",
        "description": "Premium Android phone with 200MP camera, S Pen and Dynamic AMOLED 2X display.",
        "code": "SAMSUNG-S24-ULTRA",
        "price": 1299.99,
        "status": True,
        "stock": 25,
        "category": "Smartphones",
        "thumbnails": ["galaxy-s24-ultra-titanium.jpg"],
    },
    {
        "title": "Sony WH-1000XM5",
        "description": "Wireless headphones with adaptive noise cancelling and 30 hours of battery.",
        "code": "SONY-WH-1000XM5",
        "price": 349.99,
        "status": True,
        "stock": 40,
        "category": "Audio",
        "thumbnails": ["sony-wh1000xm5-black.jpg"],
    },
    {
        "title": "iPad Air M2",
        "description": "Apple tablet with M2 chip and 10.9 inch Liquid Retina display.",
        "code": "APPLE-IPAD-AIR-M2",
        "price": 699.99,
        "status": True,
        "stock": 30,
        "category": "Tablets",
        "thumbnails": ["ipad-air-blue.jpg"],
    },
    {
        "title": "Nintendo Switch OLED",
        "description": "Hybrid game console with 7 inch OLED screen and improved audio.",
        "code": "NINTENDO-SWITCH-OLED",
        "price": 349.99,
        "status": True,
        "stock": 50,
        "category": "Gaming",
        "thumbnails": ["switch-oled-white.jpg"],
    },
    {
        "title": "Dell XPS 13",
        "description": "Premium ultrabook with 13th gen Intel Core i7, 16GB RAM and InfinityEdge display.",
        "code": "DELL-XPS-13-2024",
        "price": 1199.99,
        "status": True,
        "stock": 20,
        "category": "Laptops",
        "thumbnails": ["dell-xps13-platinum.jpg"],
    },
    {
        "title": "AirPods Pro 2",
        "description": "Apple wireless earbuds with active noise cancelling and spatial audio.",
        "code": "APPLE-AIRPODS-PRO-2",
        "price": 249.99,
        "status": True,
        "stock": 60,
        "category": "Audio",
        "thumbnails": ["airpods-pro-2.jpg"],
    },
    {
        "title": "Google Pixel 8 Pro",
        "description": "Phone with AI camera features, 6.7 inch OLED display and 120Hz refresh.",
        "code": "GOOGLE-PIXEL-8-PRO",
        "price": 999.99,
        "status": True,
        "stock": 35,
        "category": "Smartphones",
        "thumbnails": ["pixel-8-pro-black.jpg"],
    },
    {
        "title": "Logitech MX Master 3S",
        "description": "Ergonomic mouse with 8K DPI sensor, quiet clicks and 70 days of battery.",
        "code": "LOGITECH-MX-MASTER-3S",
        "price": 99.99,
        "status": True,
        "stock": 45,
        "category": "Accessories",
        "thumbnails": ["mx-master-3s-black.jpg"],
    },
    {
        "title": "Samsung 49\" Odyssey G9",
        "description": "49 inch curved QLED gaming monitor, 240Hz, 1ms, 5K resolution.",
        "code": "SAMSUNG-ODYSSEY-G9",
        "price": 1499.99,
        "status": True,
        "stock": 10,
        "category": "Monitors",
        "thumbnails": ["odyssey-g9.jpg"],
    },
]


def seed_sample_data(catalog: CatalogStore, carts: CartStore) -> Optional[str]:
    """Load the sample catalog and one empty cart into empty collections.

    Returns the id of the cart created, if any.
    """
    if catalog.count() == 0:
        inserted = catalog.insert_many(SAMPLE_PRODUCTS)
        logger.info("Loaded %d sample products", inserted)

    if carts.count() == 0:
        cart = carts.create()
        cart_id = str(cart["_id"])
        logger.info("Created sample cart %s", cart_id)
        return cart_id
    return None
