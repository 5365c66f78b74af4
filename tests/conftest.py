import pytest

from tests.fake_skedda import FakeSkedda


@pytest.fixture
def skedda() -> FakeSkedda:
    fake = FakeSkedda()
    fake.add_tenant("acme", 1, spaces=[(11, "Board Room"), (12, "Quiet Pod")])
    fake.add_tenant("globex", 2, spaces=[(21, "Lab A")])
    fake.add_tenant("initech", 3, spaces=[(31, "Cubicle 7"), (32, "Cafe Corner")])
    return fake
