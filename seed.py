"""Sample catalog written by POST /init-data."""

from datetime import datetime, timedelta
from typing import Any, Dict, List

from schemas import to_iso


def sample_products(now: datetime) -> List[Dict[str, Any]]:
    return [
        {
            "id": "1",
            "name": "Classic Cotton T-Shirt",
            "price": 1299,
            "originalPrice": 1599,
            "images": [],
            "category": "T-Shirts",
            "brand": "AmarBrand",
            "rating": 4.5,
            "reviewCount": 128,
            "description": "Premium quality cotton t-shirt perfect for everyday wear. Made with 100% organic cotton.",
            "shortDescription": "Premium quality cotton t-shirt perfect for everyday wear.",
            "sizes": ["S", "M", "L", "XL", "XXL"],
            "colors": ["Black", "White", "Navy", "Gray"],
            "inStock": True,
            "featured": True,
            "trending": True,
            "newArrival": False,
            "flashSale": {"discountPercent": 20, "endTime": to_iso(now + timedelta(hours=24))},
        },
        {
            "id": "2",
            "name": "Elegant Summer Dress",
            "price": 2499,
            "originalPrice": 2999,
            "images": [],
            "category": "Dresses",
            "brand": "ElegantWear",
            "rating": 4.8,
            "reviewCount": 89,
            "description": "Beautiful summer dress perfect for casual outings and special occasions.",
            "shortDescription": "Beautiful summer dress perfect for casual outings.",
            "sizes": ["XS", "S", "M", "L", "XL"],
            "colors": ["Blue", "Pink", "White", "Yellow"],
            "inStock": True,
            "featured": True,
            "trending": False,
            "newArrival": True,
        },
        {
            "id": "3",
            "name": "Premium Denim Jeans",
            "price": 3499,
            "originalPrice": 3999,
            "images": [],
            "category": "Jeans",
            "brand": "DenimCo",
            "rating": 4.6,
            "reviewCount": 245,
            "description": "High-quality denim jeans with a perfect fit and excellent stretch and recovery.",
            "shortDescription": "High-quality denim jeans with a perfect fit.",
            "sizes": ["28", "30", "32", "34", "36", "38"],
            "colors": ["Dark Blue", "Light Blue", "Black", "Gray"],
            "inStock": True,
            "featured": False,
            "trending": True,
            "newArrival": False,
        },
        {
            "id": "4",
            "name": "Stylish Jacket",
            "price": 4999,
            "originalPrice": 5999,
            "images": [],
            "category": "Jackets",
            "brand": "StyleHub",
            "rating": 4.7,
            "reviewCount": 156,
            "description": "Trendy jacket perfect for layering, suitable for casual and semi-formal occasions.",
            "shortDescription": "Trendy jacket perfect for layering.",
            "sizes": ["S", "M", "L", "XL", "XXL"],
            "colors": ["Black", "Brown", "Gray", "Navy"],
            "inStock": True,
            "featured": True,
            "trending": False,
            "newArrival": True,
        },
    ]
