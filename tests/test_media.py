"""
Unit tests for virtual media and boot actions.

Tests use mocked responses - no actual BMC required.
"""

import json

import pytest
import requests
import responses

from bmhprovisioner.lib.dataclasses import VirtualMediaStatus
from bmhprovisioner.lib.media import APPLIED, FAILED, SKIPPED, MediaActions

from conftest import (
    BOOT_ONCE_URL,
    EJECT_URL,
    IMAGE_URL,
    INSERT_URL,
    MEDIA_URL,
    RESET_URL,
)


CONNECTED = {"ConnectedVia": "URI", "Image": IMAGE_URL, "Inserted": True}
NOT_CONNECTED = {"ConnectedVia": "NotConnected", "Inserted": False}


@pytest.fixture
def media(client, config):
    return MediaActions(client, config)


def posted(mock_responses, url):
    return [call for call in mock_responses.calls if call.request.method == "POST" and call.request.url == url]


# =============================================================================
# Media Status Tests
# =============================================================================


class TestMediaStatus:
    """Tests for reading the virtual media connection state."""

    def test_not_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json=NOT_CONNECTED)
        assert media.is_media_connected() is False

    def test_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json=CONNECTED)
        assert media.is_media_connected() is True

    def test_any_other_value_is_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json={"ConnectedVia": "Applet"})
        assert media.is_media_connected() is True

    def test_missing_field_is_not_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json={"Name": "Virtual CD"})
        assert media.is_media_connected() is False

    def test_empty_field_is_not_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json={"ConnectedVia": ""})
        assert media.is_media_connected() is False

    def test_malformed_field_is_not_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json={"ConnectedVia": 7})
        assert media.is_media_connected() is False

    def test_malformed_body_is_not_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, body="<html>", status=200)
        assert media.is_media_connected() is False

    def test_transport_error_is_not_connected(self, media, mock_responses):
        mock_responses.add(
            responses.GET, MEDIA_URL, body=requests.exceptions.ConnectionError("down")
        )
        assert media.is_media_connected() is False

    def test_typed_status_keeps_vendor_extensions(self):
        status = VirtualMediaStatus.from_json(
            {"ConnectedVia": "URI", "MediaTypes": ["CD", "DVD"], "Oem": {"Dell": {"Foo": 1}}}
        )
        assert status.is_connected is True
        assert status.media_types == ["CD", "DVD"]
        assert status.oem == {"Dell": {"Foo": 1}}


# =============================================================================
# Eject/Insert Tests
# =============================================================================


class TestEjectMedia:
    """Tests for the idempotent eject action."""

    def test_eject_when_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json=CONNECTED)
        mock_responses.add(responses.POST, EJECT_URL, status=204)

        result = media.eject_media()

        assert result.status == APPLIED
        calls = posted(mock_responses, EJECT_URL)
        assert len(calls) == 1
        assert json.loads(calls[0].request.body) == {}

    def test_eject_skipped_when_not_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json=NOT_CONNECTED)

        result = media.eject_media()

        assert result.status == SKIPPED
        assert posted(mock_responses, EJECT_URL) == []

    def test_second_eject_is_noop(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json=CONNECTED)
        mock_responses.add(responses.GET, MEDIA_URL, json=NOT_CONNECTED)
        mock_responses.add(responses.POST, EJECT_URL, status=204)

        first = media.eject_media()
        second = media.eject_media()

        assert first.status == APPLIED
        assert second.status == SKIPPED
        assert len(posted(mock_responses, EJECT_URL)) == 1

    def test_eject_failure_reported(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json=CONNECTED)
        mock_responses.add(responses.POST, EJECT_URL, json={}, status=500)

        result = media.eject_media()

        assert result.failed
        assert result.status == FAILED
        assert result.error.status_code == 500


class TestInsertMedia:
    """Tests for the idempotent insert action."""

    def test_insert_when_not_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json=NOT_CONNECTED)
        mock_responses.add(responses.POST, INSERT_URL, status=204)

        result = media.insert_media(IMAGE_URL)

        assert result.status == APPLIED
        calls = posted(mock_responses, INSERT_URL)
        assert json.loads(calls[0].request.body) == {"Image": IMAGE_URL}

    def test_insert_skipped_when_connected(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json=CONNECTED)

        result = media.insert_media(IMAGE_URL)

        assert result.status == SKIPPED
        assert posted(mock_responses, INSERT_URL) == []

    def test_insert_twice_issues_one_insert(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json=NOT_CONNECTED)
        mock_responses.add(responses.GET, MEDIA_URL, json=CONNECTED)
        mock_responses.add(responses.POST, INSERT_URL, status=204)

        media.insert_media(IMAGE_URL)
        media.insert_media(IMAGE_URL)

        assert len(posted(mock_responses, INSERT_URL)) == 1

    def test_insert_attempted_when_field_empty(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json={"ConnectedVia": ""})
        mock_responses.add(responses.POST, INSERT_URL, status=204)

        result = media.insert_media(IMAGE_URL)

        assert result.status == APPLIED
        assert len(posted(mock_responses, INSERT_URL)) == 1

    def test_insert_attempted_when_status_unreadable(self, media, mock_responses):
        mock_responses.add(responses.GET, MEDIA_URL, json={}, status=500)
        mock_responses.add(responses.POST, INSERT_URL, status=204)

        result = media.insert_media(IMAGE_URL)

        assert result.status == APPLIED


# =============================================================================
# Boot Order and Reset Tests
# =============================================================================


class TestBootActions:
    """Tests for the one-time boot override and the forced reboot."""

    def test_one_time_boot_payload(self, media, mock_responses):
        mock_responses.add(responses.POST, BOOT_ONCE_URL, status=202)

        result = media.set_one_time_boot_to_virtual_media()

        assert result.status == APPLIED
        body = json.loads(mock_responses.calls[0].request.body)
        assert body["ShareParameters"] == {"Target": "ALL"}
        buffer = body["ImportBuffer"]
        assert '<Component FQDD="iDRAC.Embedded.1">' in buffer
        assert '<Attribute Name="ServerBoot.1#BootOnce">Enabled</Attribute>' in buffer
        assert '<Attribute Name="ServerBoot.1#FirstBootDevice">VCD-DVD</Attribute>' in buffer

    def test_one_time_boot_reapplied_every_call(self, media, mock_responses):
        mock_responses.add(responses.POST, BOOT_ONCE_URL, status=202)

        media.set_one_time_boot_to_virtual_media()
        media.set_one_time_boot_to_virtual_media()

        assert len(posted(mock_responses, BOOT_ONCE_URL)) == 2

    def test_oem_vendor_from_config(self, client, config, mock_responses):
        config["redfish_oem_vendor"] = "Acme_Manager"
        url = client.manager_url("Actions", "Oem", "Acme_Manager.ImportSystemConfiguration")
        mock_responses.add(responses.POST, url, status=202)

        result = MediaActions(client, config).set_one_time_boot_to_virtual_media()

        assert result.status == APPLIED

    def test_force_reboot(self, media, mock_responses):
        mock_responses.add(responses.POST, RESET_URL, status=204)

        result = media.force_reboot()

        assert result.status == APPLIED
        body = json.loads(mock_responses.calls[0].request.body)
        assert body == {"ResetType": "ForceRestart"}

    def test_force_reboot_failure(self, media, mock_responses):
        mock_responses.add(
            responses.POST, RESET_URL, body=requests.exceptions.SSLError("bad certificate")
        )

        result = media.force_reboot()

        assert result.failed
        assert result.action == "reboot"
