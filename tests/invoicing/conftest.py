import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def invoicing_bed():
    from invoicing.domain import invoicing

    bed = DomainFixture(invoicing)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(invoicing_bed):
    with invoicing_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
