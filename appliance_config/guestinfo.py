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
import subprocess

from appliance_config import exception

LOG = logging.getLogger(__name__)

RPCTOOL = 'ovf-rpctool'
BASE64 = 'base64'


class GuestInfo(object):
    """Access to the hypervisor guest info key/value store.

    Plain guest info keys (``userdata``, ``metadata``, ``ovfenv``) are read
    with ``get``; properties of the OVF environment (``network.*``,
    ``appliance.*``, ``loadbalance.*``) are read with ``get_ovf``.
    """

    def __init__(self, rpctool=RPCTOOL):
        self.rpctool = rpctool

    def _run(self, *args):
        command = [self.rpctool] + list(args)
        try:
            output = subprocess.check_output(command, universal_newlines=True)
        except (OSError, subprocess.CalledProcessError) as e:
            LOG.error("'%s %s' failed: %s", self.rpctool, args[0], e)
            raise exception.GuestInfoCommandFailed(
                command="%s %s %s" % (self.rpctool, args[0], args[1]))
        return output.rstrip('\n')

    def get(self, key):
        return self._run('get', key)

    def get_ovf(self, key):
        return self._run('get.ovf', key)

    def set(self, key, value):
        self._run('set', key, value)
        LOG.debug("Set guest info key '%s'.", key)

    def set_encoded(self, key, value):
        """Store a base64 encoded value and mark its encoding."""
        self.set(key, value)
        self.set('%s.encoding' % key, BASE64)
