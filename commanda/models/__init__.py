from commanda.models.tenant import Tenant
from commanda.models.profile import Profile
from commanda.models.whatsapp_instance import WhatsAppInstance
from commanda.models.order import Order, OrderItem, OrderItemExtra
from commanda.models.catalog import Category, Product, ProductExtra, ProductVariation
from commanda.models.payment import Payment
