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

from appliance_config import exception

LOG = logging.getLogger(__name__)

DEFAULT_DATAPLANE_API_PORT = 5556
DATAPLANE_PORT_KEY = 'loadbalance.dataplane_port'


def replace_in_file(file_path, old, new):
    """Literal in-place replacement of ``old`` with ``new``."""
    with open(file_path) as f:
        contents = f.read()
    if old not in contents:
        LOG.warning("'%s' not found in '%s'.", old, file_path)
    with open(file_path, 'w') as f:
        f.write(contents.replace(old, new))


def bind_ssh_to_ip(ip, sshd_config):
    replace_in_file(sshd_config, '#ListenAddress 0.0.0.0',
                    'ListenAddress %s' % ip)
    LOG.info("SSH is now bound to IP address %s", ip)


def bind_dataplane_api_to_ip(ip, data_plane_api_cfg):
    replace_in_file(data_plane_api_cfg, 'TLS_HOST=0.0.0.0',
                    'TLS_HOST=%s' % ip)
    LOG.info("Data Plane API is now bound to IP address %s", ip)


def get_management_address(settings):
    """Management IP without its prefix length.

    :raises: ManagementIPNotStatic if the management network uses DHCP
    """
    if settings.management_ip is None:
        raise exception.ManagementIPNotStatic()
    return settings.management_ip.split('/')[0]


def bind_services_to_management_ip(settings, paths):
    ip = get_management_address(settings)
    LOG.info("Binding SSH and Data Plane API to the management IP address "
             "%s", ip)
    bind_ssh_to_ip(ip, paths.sshd_config)
    bind_dataplane_api_to_ip(ip, paths.data_plane_api_cfg)


def get_dataplane_api_port(settings):
    value = settings.dataplane_port
    if value is None:
        return DEFAULT_DATAPLANE_API_PORT
    try:
        port = int(value)
    except ValueError:
        raise exception.InvalidOvfValue(key=DATAPLANE_PORT_KEY, value=value)
    if port == 0:
        return DEFAULT_DATAPLANE_API_PORT
    if not 0 < port < 65536:
        raise exception.InvalidOvfValue(key=DATAPLANE_PORT_KEY, value=value)
    return port


def set_dataplane_api_port(settings, paths):
    port = get_dataplane_api_port(settings)
    replace_in_file(paths.data_plane_api_cfg,
                    'TLS_PORT=%d' % DEFAULT_DATAPLANE_API_PORT,
                    'TLS_PORT=%d' % port)
    LOG.info("Data Plane API port set to %d", port)
    return port
