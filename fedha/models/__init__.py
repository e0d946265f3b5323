from fedha.models.principal import Principal
from fedha.models.tenant import Tenant
from fedha.models.membership import Membership
from fedha.models.subscription import Subscription
from fedha.models.catalog import CatalogItem
from fedha.models.sale import Sale, SaleLine
from fedha.models.rentals import Lessee
from fedha.models.school import Student
from fedha.models.payments import FeePayment, RentPayment
from fedha.models.hospitality import Reservation, ResourceUnit
