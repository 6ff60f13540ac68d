"""One object = full bounded context «partners»."""
from goldencrust.core.access import roles
from goldencrust.ddd import DomainModule

from .application import (
    CreateCustomerGroup,
    CreateCustomerGroupHandler,
    CreateDistributor,
    CreateDistributorHandler,
    ListCustomerGroups,
    ListCustomerGroupsHandler,
    ListDistributors,
    ListDistributorsHandler,
)
from .domain import CustomerGroup, Distributor
from .infrastructure import (
    CustomerGroupRepositoryImpl,
    DistributorRepositoryImpl,
    ICustomerGroupRepository,
    IDistributorRepository,
)

ACCOUNT_MANAGERS = roles("admin", "sales")
ADMINS = roles("admin")

partners_module = (
    DomainModule("partners")
    .aggregate(Distributor)
    .aggregate(CustomerGroup)
    .repository(IDistributorRepository, DistributorRepositoryImpl)
    .repository(ICustomerGroupRepository, CustomerGroupRepositoryImpl)
    .query(ListDistributors, ListDistributorsHandler, path="/api/distributors", roles=ACCOUNT_MANAGERS)
    .command(CreateDistributor, CreateDistributorHandler, path="/api/distributors", roles=ADMINS, status_code=201)
    .query(ListCustomerGroups, ListCustomerGroupsHandler, path="/api/customer-groups", roles=ACCOUNT_MANAGERS)
    .command(CreateCustomerGroup, CreateCustomerGroupHandler, path="/api/customer-groups", roles=ACCOUNT_MANAGERS, status_code=201)
)
