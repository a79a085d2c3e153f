#!/usr/bin/env python3

# redfish.py - Bare Metal Host Provisioner Redfish client
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

# Refs:
# https://downloads.dell.com/solutions/dell-management-solution-resources/RESTfulSerConfig-using-iDRAC-REST%20API%28DTC%20copy%29.pdf

import base64
import hashlib
import json
import requests
import urllib3

from celery.utils.log import get_task_logger

from bmhprovisioner.config import default_config


logger = get_task_logger(__name__)


#
# Helper Classes
#
class TransportError(Exception):
    """
    A failed call to the BMC: connection, TLS, timeout or a non-2xx reply

    The client returns these instead of raising them.
    """

    def __init__(self, error=None, response=None, data=None, cause=None):
        if error is not None:
            self.short_message = error
        else:
            self.short_message = "Generic transport failure"

        self.cause = cause
        self.full_message = ""
        self.res_message = ""
        self.severity = None
        self.message_id = None

        if response is not None:
            self.status_code = response.status_code
            rinfo = get_extended_info(data)
            if rinfo is not None:
                self.full_message = rinfo.get("Message", "")
                self.res_message = rinfo.get("Resolution", "")
                self.severity = rinfo.get("Severity", "Error")
                self.message_id = rinfo.get("MessageId", "N/A")
            else:
                self.severity = "Error"
                self.message_id = "N/A"
        else:
            self.status_code = None

        super().__init__(str(self))

    def __str__(self):
        if self.status_code is not None:
            message = f"{self.short_message}: {self.full_message} {self.res_message} (HTTP Code: {self.status_code}, Severity: {self.severity}, ID: {self.message_id})"
        elif self.cause is not None:
            message = f"{self.short_message}: {self.cause}"
        else:
            message = f"{self.short_message}"
        return str(message)


class RedfishClient:
    """
    An authenticated client for the Redfish interface of one BMC

    The only state held is the set of headers fixed at construction.
    """

    def __init__(self, base_address, credentials, config=None):
        if config is None:
            config = default_config()

        self.name = "RedfishClient"
        self.auth_type = "Basic"
        self.base_url = normalize_base_url(base_address)
        self.system_id = config["redfish_system_id"]
        self.manager_id = config["redfish_manager_id"]
        self.verify = config["redfish_verify_tls"]
        self.timeout = config["redfish_timeout"]

        if not self.verify:
            # Certificate checks are explicitly disabled for this BMC
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        username = trim_newline(credentials.username)
        password = trim_newline(credentials.password)
        encoded_credentials = encode_string(f"{username}:{password}")

        self.headers = dict()
        self.set_header("Authorization", f"{self.auth_type} {encoded_credentials}")
        self.set_header("Accept", "application/json")
        self.set_header("Content-Type", "application/json")

    def set_header(self, key, value):
        self.headers[key] = value
        return self.headers

    def system_url(self, *parts):
        return "/".join([self.base_url, "Systems", self.system_id, *parts])

    def manager_url(self, *parts):
        return "/".join([self.base_url, "Managers", self.manager_id, *parts])

    def event_url(self, *parts):
        return "/".join([self.base_url, "EventService", *parts])

    def get(self, url):
        """
        GET a resource; returns the decoded body and a TransportError or None
        """
        try:
            response = requests.get(
                url, headers=self.headers, verify=self.verify, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            error = TransportError(f"GET request to {url} failed", cause=e)
            logger.warning(f"! Error: {error}")
            return dict(), error

        return self.handle_response("GET", url, response)

    def post(self, url, data):
        """
        POST a JSON body; returns the decoded body and a TransportError or None
        """
        payload = json.dumps(data)

        logger.debug(f"POST payload: {payload}")

        try:
            response = requests.post(
                url,
                data=payload,
                headers=self.headers,
                verify=self.verify,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            error = TransportError(f"POST request to {url} failed", cause=e)
            logger.warning(f"! Error: {error}")
            return dict(), error

        return self.handle_response("POST", url, response)

    def handle_response(self, method, url, response):
        try:
            data = response.json()
        except ValueError:
            logger.debug(f"Response to {method} {url} is not valid JSON")
            data = dict()

        if not isinstance(data, dict):
            data = dict()

        if response.status_code in [200, 201, 202, 204]:
            return data, None

        error = TransportError(
            f"{method} request to {url} failed", response=response, data=data
        )
        logger.warning(f"! Error: {method} request to {url} failed")
        logger.warning(
            f"! HTTP Code: {error.status_code}   Severity: {error.severity}   ID: {error.message_id}"
        )
        logger.warning(f"! Details: {error.full_message} {error.res_message}")
        return data, error


#
# Helper functions
#
def get_extended_info(data):
    """
    Return the first Redfish extended info message of an error body, if any
    """
    try:
        rinfo = data["error"]["@Message.ExtendedInfo"][0]
    except (KeyError, IndexError, TypeError):
        return None

    if not isinstance(rinfo, dict):
        return None
    return rinfo


def normalize_base_url(base_address):
    """
    Force the BMC address onto HTTPS, whatever scheme it was given with
    """
    address = base_address.strip()
    if "://" in address:
        address = address.split("://", 1)[1]
    return f"https://{address}".rstrip("/")


def trim_newline(value):
    if not isinstance(value, str):
        raise ValueError("BMC credentials must be strings")
    if value.endswith("\n"):
        return value[:-1]
    return value


def encode_string(data):
    return base64.b64encode(data.encode("utf-8")).decode("ascii")


def get_unique_node_id(hostname):
    h = hashlib.md5()
    h.update(hostname.lower().encode("utf-8"))
    return h.hexdigest()


#
# Entry function
#
def connect(base_address, credentials, config=None):
    """
    Create a Redfish client for the BMC at base_address
    """
    return RedfishClient(base_address, credentials, config=config)
