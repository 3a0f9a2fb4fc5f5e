# -*- coding: utf-8 -*-

# Licensed under the Apache License, Version 2.0 (the "License"); you may
# not use this file except in compliance with the License. You may obtain
# a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations
# under the License.

import logging


LOG = logging.getLogger(__name__)


class ApplianceConfigException(Exception):
    """Base appliance-config exception

    To correctly use this class, inherit from it and define
    a 'msg_fmt' property. That message will get printf'd
    with the keyword arguments provided to the constructor.

    """
    msg_fmt = "An unknown exception occurred."

    def __init__(self, message=None, **kwargs):
        self.kwargs = kwargs

        if not message:
            try:
                message = self.msg_fmt % kwargs

            except Exception:
                # kwargs doesn't match a variable in the message
                # log the issue and the kwargs
                LOG.exception('Exception in string format operation')
                for name, value in kwargs.items():
                    LOG.error("%s: %s", name, value)

                # at least get the core message out if something happened
                message = self.msg_fmt

        super(ApplianceConfigException, self).__init__(message)


class ProvisioningSkipped(ApplianceConfigException):
    """Provisioning preconditions are not met; nothing was changed."""
    msg_fmt = "Provisioning skipped."


class MissingOvfEnvironment(ProvisioningSkipped):
    msg_fmt = "Exiting due to no ovfenv to process."


class ExistingUserdata(ProvisioningSkipped):
    msg_fmt = "Exiting due to existing userdata."


class MissingOvfValues(ProvisioningSkipped):
    msg_fmt = "Exiting due to missing OVF values: %(keys)s."

    def __init__(self, keys):
        self.keys = sorted(keys)
        super(MissingOvfValues, self).__init__(keys=", ".join(self.keys))


class ManagementIPNotStatic(ApplianceConfigException):
    msg_fmt = "Management IP must be static."


class NetworkDeviceNotFound(ApplianceConfigException):
    msg_fmt = "Expected network PCI device for %(pci)s not found."


class InvalidOvfValue(ApplianceConfigException):
    msg_fmt = "Invalid value %(value)r for OVF key %(key)s."


class MultilinePassword(ApplianceConfigException):
    msg_fmt = "Value of OVF key %(key)s must be a single line."


class GuestInfoCommandFailed(ApplianceConfigException):
    msg_fmt = "Guest info command failed: %(command)s."


class CertificateGenerationFailed(ApplianceConfigException):
    msg_fmt = "Failed to output certificate and key: %(reason)s."
