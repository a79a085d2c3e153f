#!/usr/bin/env python3

# provisioner.py - Bare Metal Host Provisioner step operations
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

from celery.utils.log import get_task_logger

from bmhprovisioner.config import default_config
from bmhprovisioner.lib.dataclasses import StepResult
from bmhprovisioner.lib.inspection import StaticInspectionService
from bmhprovisioner.lib.media import MediaActions
from bmhprovisioner.lib.redfish import connect, get_unique_node_id


logger = get_task_logger(__name__)


PLACEHOLDER_PROVISIONING_ID = "temporary-fake-id"


class ProvisioningError(Exception):
    """
    An exception when a provisioning action fails against the BMC
    """

    def __init__(self, error=None, action=None):
        self.action = action
        self.msg = f"Provisioning failed: {error}"

    def __str__(self):
        return str(self.msg)


class RedfishProvisioner:
    """
    Drives the lifecycle of one host through its BMC

    Every operation is safe to call repeatedly and returns a StepResult;
    the caller persists the host record and calls again while the result
    is dirty.
    """

    def __init__(
        self,
        host,
        credentials,
        publisher,
        config=None,
        inspector=None,
        log=None,
        client_factory=connect,
    ):
        if config is None:
            config = default_config()
        if inspector is None:
            inspector = StaticInspectionService()
        if log is None:
            log = logger

        self.host = host
        self.credentials = credentials
        self.publisher = publisher
        self.config = config
        self.inspector = inspector
        self.log = log
        self.client_factory = client_factory

    def validate_management_access(self):
        """
        Register the host with a provisioning ID, or clear any error once registered
        """
        self.log.info(f"{self.host.name}: testing management access")

        # Fill in the ID of the host in the provisioning system
        if self.host.provisioning_id == "":
            if self.host.name:
                self.host.provisioning_id = get_unique_node_id(self.host.name)
            else:
                self.host.provisioning_id = PLACEHOLDER_PROVISIONING_ID
            self.log.info(
                f"{self.host.name}: setting provisioning id {self.host.provisioning_id}"
            )
            self.publisher("Registered", "Registered new host")
            return StepResult(
                dirty=True,
                requeue_after=self.config["provisioning_register_requeue_delay"],
            )

        return StepResult(dirty=self.host.clear_error())

    def inspect_hardware(self):
        self.log.info(f"{self.host.name}: inspecting hardware")

        if self.host.hardware_details is None:
            self.log.info(f"{self.host.name}: continuing inspection by setting details")
            self.host.hardware_details = self.inspector.describe_hardware(self.host)
            self.publisher("InspectionComplete", "Hardware inspection completed")
            return StepResult(dirty=True)

        return StepResult()

    def update_hardware_state(self):
        if not self.host.needs_provisioning():
            self.log.info(f"{self.host.name}: updating hardware state")
        return StepResult()

    def provision(self):
        """
        Boot the host into its image from virtual media

        The destructive sequence runs only while the host image differs from
        the last image provisioned successfully.
        """
        self.log.info(f"{self.host.name}: provisioning image to host")

        if not self.host.image_url:
            message = "no image URL set; nothing to provision"
            self.log.warning(f"{self.host.name}: {message}")
            if self.host.error_state == message:
                return StepResult()
            self.host.set_error(message)
            return StepResult(dirty=True)

        if not self.host.needs_provisioning():
            self.log.info(
                f"{self.host.name}: image '{self.host.image_url}' already provisioned"
            )
            return StepResult()

        image_url = self.host.image_url
        client = self.client_factory(
            self.host.bmc_address, self.credentials, self.config
        )
        media = MediaActions(client, self.config)

        actions = [
            media.eject_media,
            lambda: media.insert_media(image_url),
            media.set_one_time_boot_to_virtual_media,
            media.force_reboot,
        ]

        failures = list()
        for action in actions:
            outcome = action()
            if not outcome.failed:
                continue

            failures.append(outcome)
            if self.config["provisioning_abort_on_error"]:
                message = f"action '{outcome.action}' failed: {outcome.error}"
                self.log.error(f"{self.host.name}: {message}; aborting")
                self.host.set_error(message)
                raise ProvisioningError(message, action=outcome.action)

            self.log.warning(
                f"{self.host.name}: action '{outcome.action}' failed; continuing"
            )

        # Marked once the reboot went through, even after earlier failures
        if "reboot" not in [f.action for f in failures]:
            self.host.provisioned_image_url = image_url

        if len(failures) > 0:
            failed_actions = ", ".join([f.action for f in failures])
            self.host.set_error(f"actions failed: {failed_actions}")
            self.log.warning(
                f"{self.host.name}: provisioning finished with failed actions: {failed_actions}"
            )
        else:
            self.log.info(f"{self.host.name}: finished provisioning")

        return StepResult(
            dirty=True,
            requeue_after=self.config["provisioning_provision_requeue_delay"],
        )

    def deprovision(self):
        """
        Tear the host down one piece of state per call
        """
        self.log.info(f"{self.host.name}: ensuring host is removed")

        requeue_after = self.config["provisioning_deprovision_requeue_delay"]

        if self.host.hardware_details is not None:
            self.publisher("DeprovisionStarted", "Image deprovisioning started")
            self.log.info(f"{self.host.name}: clearing hardware details")
            self.host.hardware_details = None
            return StepResult(dirty=True, requeue_after=requeue_after)

        if self.host.provisioning_id != "" or self.host.provisioned_image_url != "":
            self.log.info(f"{self.host.name}: clearing provisioning id")
            self.host.provisioning_id = ""
            self.host.provisioned_image_url = ""
            return StepResult(dirty=True, requeue_after=requeue_after)

        self.publisher("DeprovisionComplete", "Image deprovisioning completed")
        return StepResult()

    def power_on(self):
        self.log.info(f"{self.host.name}: ensuring host is powered on")

        if not self.host.powered_on:
            self.publisher("PowerOn", "Host powered on")
            self.log.info(f"{self.host.name}: changing status")
            self.host.powered_on = True
            return StepResult(dirty=True)

        return StepResult()

    def power_off(self):
        self.log.info(f"{self.host.name}: ensuring host is powered off")

        if self.host.powered_on:
            self.publisher("PowerOff", "Host powered off")
            self.log.info(f"{self.host.name}: changing status")
            self.host.powered_on = False
            return StepResult(dirty=True)

        return StepResult()
