"""Shared pytest fixtures for provisioner tests."""
import pytest
import responses

from bmhprovisioner.config import default_config
from bmhprovisioner.lib.dataclasses import Credentials, HostRecord
from bmhprovisioner.lib.redfish import connect


BMC_ADDRESS = "redfish://bmc.example.com/redfish/v1"
BASE_URL = "https://bmc.example.com/redfish/v1"
MANAGER_URL = f"{BASE_URL}/Managers/iDRAC.Embedded.1"
SYSTEM_URL = f"{BASE_URL}/Systems/System.Embedded.1"

MEDIA_URL = f"{MANAGER_URL}/VirtualMedia/CD"
EJECT_URL = f"{MEDIA_URL}/Actions/VirtualMedia.EjectMedia"
INSERT_URL = f"{MEDIA_URL}/Actions/VirtualMedia.InsertMedia"
BOOT_ONCE_URL = f"{MANAGER_URL}/Actions/Oem/EID_674_Manager.ImportSystemConfiguration"
RESET_URL = f"{SYSTEM_URL}/Actions/ComputerSystem.Reset"

IMAGE_URL = "http://images.example.com/ubuntu.iso"


class EventRecorder:
    """Collects (reason, message) pairs handed to an event publisher."""

    def __init__(self):
        self.events = []

    def __call__(self, reason, message):
        self.events.append((reason, message))

    @property
    def reasons(self):
        return [reason for reason, _ in self.events]


@pytest.fixture
def config():
    return default_config()


@pytest.fixture
def credentials():
    return Credentials(username="admin", password="password")


@pytest.fixture
def client(credentials, config):
    return connect(BMC_ADDRESS, credentials, config)


@pytest.fixture
def host():
    return HostRecord(
        name="worker-0",
        bmc_address=BMC_ADDRESS,
        image_url=IMAGE_URL,
    )


@pytest.fixture
def publisher():
    return EventRecorder()


@pytest.fixture
def mock_responses():
    """Enable responses mock for HTTP requests."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps
