#!/usr/bin/env python3

# media.py - Bare Metal Host Provisioner virtual media and boot actions
# Part of the Bare Metal Host Provisioner (BMHP) system
#
#    Copyright (C) 2018-2021 Joshua M. Boniface <joshua@boniface.me>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, version 3.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <https://www.gnu.org/licenses/>.
#
###############################################################################

from dataclasses import dataclass
from typing import Optional

from celery.utils.log import get_task_logger

from bmhprovisioner.config import default_config
from bmhprovisioner.lib.dataclasses import VirtualMediaStatus
from bmhprovisioner.lib.redfish import TransportError


logger = get_task_logger(__name__)


SKIPPED = "skipped"
APPLIED = "applied"
FAILED = "failed"

BOOT_ONCE_IMPORT_BUFFER = (
    '<SystemConfiguration><Component FQDD="{fqdd}">'
    '<Attribute Name="ServerBoot.1#BootOnce">Enabled</Attribute>'
    '<Attribute Name="ServerBoot.1#FirstBootDevice">VCD-DVD</Attribute>'
    "</Component></SystemConfiguration>"
)


@dataclass
class ActionResult:
    """
    The outcome of a single media or boot action
    """

    action: str
    status: str
    error: Optional[TransportError] = None

    @property
    def failed(self):
        return self.status == FAILED


class MediaActions:
    """
    Virtual media and boot order actions against one BMC

    Eject and insert read the virtual media state first and skip when
    there is nothing to do; the boot override and reset always act.
    """

    def __init__(self, client, config=None):
        if config is None:
            config = default_config()

        self.client = client
        self.oem_vendor = config["redfish_oem_vendor"]

    def _result(self, action, error):
        if error is not None:
            logger.warning(f"Action '{action}' failed: {error}")
            return ActionResult(action, FAILED, error)
        return ActionResult(action, APPLIED)

    def get_media_status(self):
        endpoint = self.client.manager_url("VirtualMedia", "CD")
        data, error = self.client.get(endpoint)
        if error is not None:
            logger.warning(f"Unable to read virtual media status: {error}")
        return VirtualMediaStatus.from_json(data)

    def is_media_connected(self):
        return self.get_media_status().is_connected

    def eject_media(self):
        logger.info("Starting ISO eject")
        if not self.is_media_connected():
            logger.info("No CD to eject")
            return ActionResult("eject", SKIPPED)

        logger.info("Ejecting existing CD")
        endpoint = self.client.manager_url(
            "VirtualMedia", "CD", "Actions", "VirtualMedia.EjectMedia"
        )
        _, error = self.client.post(endpoint, {})
        return self._result("eject", error)

    def insert_media(self, image_url):
        logger.info("Starting ISO attach")
        if self.is_media_connected():
            logger.info("Skipping ISO insert; CD already attached")
            return ActionResult("insert", SKIPPED)

        logger.info(f"Attaching new ISO {image_url}")
        endpoint = self.client.manager_url(
            "VirtualMedia", "CD", "Actions", "VirtualMedia.InsertMedia"
        )
        _, error = self.client.post(endpoint, {"Image": image_url})
        return self._result("insert", error)

    def set_one_time_boot_to_virtual_media(self):
        logger.info("Setting one-time boot to virtual CD/DVD")
        endpoint = self.client.manager_url(
            "Actions", "Oem", f"{self.oem_vendor}.ImportSystemConfiguration"
        )
        payload = {
            "ShareParameters": {"Target": "ALL"},
            "ImportBuffer": BOOT_ONCE_IMPORT_BUFFER.format(
                fqdd=self.client.manager_id
            ),
        }
        _, error = self.client.post(endpoint, payload)
        return self._result("boot-once", error)

    def force_reboot(self):
        logger.info("Starting OS installation; rebooting the node")
        endpoint = self.client.system_url("Actions", "ComputerSystem.Reset")
        _, error = self.client.post(endpoint, {"ResetType": "ForceRestart"})
        return self._result("reboot", error)
