#!/usr/bin/env python3

# config.py - Bare Metal Host Provisioner configuration
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

import os
import yaml

from celery.utils.log import get_task_logger


logger = get_task_logger(__name__)


CONFIG_ENVIRONMENT_VARIABLE = "BMHPROVISIONER_CONFIG_FILE"

DEFAULTS = {
    "redfish_system_id": "System.Embedded.1",
    "redfish_manager_id": "iDRAC.Embedded.1",
    "redfish_oem_vendor": "EID_674_Manager",
    "redfish_verify_tls": True,
    "redfish_timeout": 30,
    "provisioning_register_requeue_delay": 5,
    "provisioning_provision_requeue_delay": 10,
    "provisioning_deprovision_requeue_delay": 10,
    "provisioning_abort_on_error": True,
    "notifications_enabled": False,
    "notifications_uri": None,
    "notifications_action": "post",
    "notifications_icons": {
        "begin": "",
        "success": "",
        "info": "",
        "completed": "",
        "failure": "",
    },
    "notifications_body": {"text": "{icon} {message}"},
}

NOTIFICATION_ACTIONS = ["get", "post", "put", "patch"]

BOOLEAN_KEYS = [
    "redfish_verify_tls",
    "provisioning_abort_on_error",
    "notifications_enabled",
]


##########################################################
# Exceptions
##########################################################


class MalformedConfigurationError(Exception):
    """
    An exception when parsing the provisioner configuration file
    """

    def __init__(self, error=None):
        self.msg = f"ERROR: Configuration file is malformed: {error}"

    def __str__(self):
        return str(self.msg)


##########################################################
# Helper Functions
##########################################################


def strtobool(stringv):
    if stringv is None:
        return False
    if isinstance(stringv, bool):
        return bool(stringv)
    if str(stringv).strip().lower() in ["y", "yes", "t", "true", "on", "1"]:
        return True
    return False


def default_config():
    """
    Return a flattened configuration dictionary populated with the defaults
    """
    config = dict()
    for key, value in DEFAULTS.items():
        if isinstance(value, dict):
            value = dict(value)
        config[key] = value
    return config


##########################################################
# Configuration Parsing
##########################################################


def get_config_path():
    try:
        return os.environ[CONFIG_ENVIRONMENT_VARIABLE]
    except KeyError:
        raise MalformedConfigurationError(
            f'The "{CONFIG_ENVIRONMENT_VARIABLE}" environment variable must be set'
        )


def read_config(config_file=None):
    if config_file is None:
        config_file = get_config_path()

    logger.info(f"Loading configuration from file '{config_file}'")

    # Load the YAML config file
    with open(config_file, "r") as cfgfile:
        try:
            o_config = yaml.load(cfgfile, Loader=yaml.SafeLoader)
        except yaml.YAMLError as e:
            raise MalformedConfigurationError(f"Failed to parse YAML: {e}")

    # Create the configuration dictionary
    config = dict()

    # Get the base configuration
    try:
        o_base = o_config["bmhprovisioner"]
    except (KeyError, TypeError) as k:
        raise MalformedConfigurationError(f"Missing top-level category {k}")

    # Get the first-level categories
    try:
        o_redfish = o_base["redfish"]
        o_provisioning = o_base["provisioning"]
        o_notifications = o_base["notifications"]
    except KeyError as k:
        raise MalformedConfigurationError(f"Missing first-level category {k}")

    # Get the Redfish configuration
    for key in ["system_id", "manager_id", "oem_vendor", "verify_tls", "timeout"]:
        try:
            config[f"redfish_{key}"] = o_redfish[key]
        except Exception:
            raise MalformedConfigurationError(
                f"Missing second-level key '{key}' under 'redfish'"
            )

    # Get the provisioning configuration
    for key in [
        "register_requeue_delay",
        "provision_requeue_delay",
        "deprovision_requeue_delay",
        "abort_on_error",
    ]:
        try:
            config[f"provisioning_{key}"] = o_provisioning[key]
        except Exception:
            raise MalformedConfigurationError(
                f"Missing second-level key '{key}' under 'provisioning'"
            )

    # Get the Notifications configuration
    for key in ["enabled", "uri", "action", "icons", "body"]:
        try:
            config[f"notifications_{key}"] = o_notifications[key]
        except Exception:
            raise MalformedConfigurationError(
                f"Missing second-level key '{key}' under 'notifications'"
            )

    if config["notifications_action"] not in NOTIFICATION_ACTIONS:
        raise MalformedConfigurationError(
            f"Value of 'notifications/action' must be one of {', '.join(NOTIFICATION_ACTIONS)}"
        )

    for key in BOOLEAN_KEYS:
        config[key] = strtobool(config[key])

    for key in [
        "redfish_timeout",
        "provisioning_register_requeue_delay",
        "provisioning_provision_requeue_delay",
        "provisioning_deprovision_requeue_delay",
    ]:
        try:
            config[key] = int(config[key])
        except (TypeError, ValueError):
            raise MalformedConfigurationError(
                f"Value of '{key}' must be an integer number of seconds"
            )

    return config
