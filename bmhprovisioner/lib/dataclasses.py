#!/usr/bin/env python3

# dataclasses.py - Bare Metal Host Provisioner dataclasses
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

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class NIC:
    """
    A network interface discovered on a host
    """

    name: str
    model: str
    network: str
    mac: str
    ip: str
    speed_gbps: int


@dataclass
class Storage:
    """
    A storage device discovered on a host
    """

    name: str
    type: str
    size_gib: int
    model: str


@dataclass
class CPU:
    type: str
    speed_ghz: int


@dataclass
class HardwareDetails:
    """
    The hardware inventory of a host
    """

    ram_gib: int
    nics: List[NIC] = field(default_factory=list)
    storage: List[Storage] = field(default_factory=list)
    cpus: List[CPU] = field(default_factory=list)


@dataclass
class Credentials:
    """
    BMC basic authentication credentials
    """

    username: str
    password: str

    def __repr__(self):
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass
class HostRecord:
    """
    An instance of a managed host

    The controller owns the lifecycle of the record; the provisioner only
    mutates it from its step operations.
    """

    name: str = ""
    provisioning_id: str = ""
    hardware_details: Optional[HardwareDetails] = None
    powered_on: bool = False
    image_url: str = ""
    bmc_address: str = ""
    error_state: Optional[str] = None
    provisioned_image_url: str = ""

    def clear_error(self):
        """
        Clear any error and return whether there was one to clear
        """
        if self.error_state is None:
            return False
        self.error_state = None
        return True

    def set_error(self, message):
        self.error_state = message

    def needs_provisioning(self):
        if not self.image_url:
            return False
        return self.provisioned_image_url != self.image_url


@dataclass
class StepResult:
    """
    The result of a provisioning step

    A dirty result means the host record changed and the step must be
    called again; requeue_after is a delay hint in seconds.
    """

    dirty: bool = False
    requeue_after: int = 0


@dataclass
class VirtualMediaStatus:
    """
    The state of a virtual media device as reported by the BMC
    """

    connected_via: Optional[str] = None
    image: Optional[str] = None
    inserted: Optional[bool] = None
    media_types: List[str] = field(default_factory=list)
    oem: Dict = field(default_factory=dict)

    @classmethod
    def from_json(cls, data):
        if not isinstance(data, dict):
            data = dict()

        connected_via = data.get("ConnectedVia")
        if not isinstance(connected_via, str):
            connected_via = None

        image = data.get("Image")
        if not isinstance(image, str):
            image = None

        inserted = data.get("Inserted")
        if not isinstance(inserted, bool):
            inserted = None

        media_types = data.get("MediaTypes")
        if not isinstance(media_types, list):
            media_types = list()

        oem = data.get("Oem")
        if not isinstance(oem, dict):
            oem = dict()

        return cls(
            connected_via=connected_via,
            image=image,
            inserted=inserted,
            media_types=media_types,
            oem=oem,
        )

    @property
    def is_connected(self):
        # A missing or empty field counts as disconnected so an insert is still tried
        if not self.connected_via:
            return False
        return self.connected_via != "NotConnected"
