from models.raw_material import RawMaterial
from models.product import Product
from models.product_material import ProductMaterial
from models.sale import Sale
from models.sale_product import SaleProduct
from models.users import User
from models.revoked_token import RevokedToken

__all__ = ['Product', 'ProductMaterial', 'RawMaterial', 'RevokedToken', 'Sale', 'SaleProduct', 'User',]
