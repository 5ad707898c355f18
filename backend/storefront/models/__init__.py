from .tenancy import Tenant, Membership
from .catalog import Category, Product, Image, ProductImage, REVIEW_STATUSES

__all__ = [
    'Tenant', 'Membership',
    'Category', 'Product', 'Image', 'ProductImage', 'REVIEW_STATUSES',
]
