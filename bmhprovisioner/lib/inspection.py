#!/usr/bin/env python3

# inspection.py - Bare Metal Host Provisioner hardware inspection
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

from bmhprovisioner.lib.dataclasses import HardwareDetails, NIC, Storage, CPU


class InspectionService:
    """
    Describes the hardware of a host
    """

    def describe_hardware(self, host):
        raise NotImplementedError("Must be implemented by an inspection backend")


class StaticInspectionService(InspectionService):
    """
    Reports a fixed inventory in place of a real inspection
    """

    def describe_hardware(self, host):
        return HardwareDetails(
            ram_gib=128,
            nics=[
                NIC(
                    name="nic-1",
                    model="virt-io",
                    network="Pod Networking",
                    mac="some:mac:address",
                    ip="192.168.100.1",
                    speed_gbps=1,
                ),
                NIC(
                    name="nic-2",
                    model="e1000",
                    network="Pod Networking",
                    mac="some:other:mac:address",
                    ip="192.168.100.2",
                    speed_gbps=1,
                ),
            ],
            storage=[
                Storage(
                    name="disk-1 (boot)",
                    type="SSD",
                    size_gib=1024 * 93,
                    model="Dell CFJ61",
                ),
                Storage(
                    name="disk-2",
                    type="SSD",
                    size_gib=1024 * 93,
                    model="Dell CFJ61",
                ),
            ],
            cpus=[CPU(type="x86", speed_ghz=3)],
        )
