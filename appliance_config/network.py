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

import collections
import logging
import os
from os import path

from appliance_config import exception

LOG = logging.getLogger(__name__)

INTERFACE_NAMES = ('eth0', 'eth1', 'eth2')
DEFAULT_NAMESERVERS = '1.1.1.1, 1.0.0.1'

Network = collections.namedtuple('Network', [
    'nic_id', 'name', 'pci', 'ip_attr', 'gateway_attr', 'route_table'])

# The PCI slots are hard-coded in the OVF descriptor and are the reliable
# way of telling the networks apart.
MANAGEMENT = Network('id0', 'mgmt', '0000:03:00.0',
                     'management_ip', 'management_gateway', None)
WORKLOAD = Network('id1', 'workload', '0000:0b:00.0',
                   'workload_ip', 'workload_gateway', 2)
FRONTEND = Network('id2', 'frontend', '0000:13:00.0',
                   'frontend_ip', 'frontend_gateway', 3)

_INDENT = ' ' * 8


def get_network_for_pci(pci, sys_class_net='/sys/class/net'):
    """Find the interface backed by the given PCI device.

    :param pci: PCI address, e.g. ``0000:03:00.0``
    :param sys_class_net: sysfs directory listing the network interfaces
    :return: interface name (before any renaming)
    :raises: NetworkDeviceNotFound if no interface matches
    """
    for name in INTERFACE_NAMES:
        device = path.join(sys_class_net, name, 'device')
        if not path.exists(device):
            continue
        if path.basename(os.path.realpath(device)) == pci:
            return name
    raise exception.NetworkDeviceNotFound(pci=pci)


def get_mac_for_network(name, sys_class_net='/sys/class/net'):
    with open(path.join(sys_class_net, name, 'address')) as f:
        return f.read().strip()


def render_interface_config(nic_id, name, mac, ip=None):
    """Produce the netplan entry for one interface.

    The entry is matched on the MAC address because interface names are
    reassigned once ``set-name`` is applied. DHCP is used when no static
    IP (CIDR notation) is given.
    """
    lines = [
        '%s:' % nic_id,
        '    match:',
        '        macaddress: "%s"' % mac,
        '    set-name: %s' % name,
        '    wakeonlan: true',
    ]
    if ip in (None, '', 'null'):
        lines.append('    dhcp4: true')
    else:
        lines.extend([
            '    dhcp4: false',
            '    addresses:',
            '    - %s' % ip,
        ])
    return '\n'.join(_INDENT + line for line in lines)


class NetworkResolver(object):
    """Maps the appliance networks to the interfaces present on this host."""

    def __init__(self, sys_class_net='/sys/class/net'):
        self.sys_class_net = sys_class_net

    def interface(self, network):
        return get_network_for_pci(network.pci, self.sys_class_net)

    def mac(self, network):
        return get_mac_for_network(self.interface(network),
                                   self.sys_class_net)

    def is_present(self, network):
        try:
            self.interface(network)
        except exception.NetworkDeviceNotFound:
            return False
        return True


def _network_config(resolver, network, settings):
    return render_interface_config(network.nic_id, network.name,
                                   resolver.mac(network),
                                   getattr(settings, network.ip_attr))


def get_management_network_config(resolver, settings):
    config = _network_config(resolver, MANAGEMENT, settings)
    lines = [config]
    if settings.management_gateway:
        lines.append(_INDENT + '    gateway4: %s'
                     % settings.management_gateway)
    nameservers = settings.nameservers or DEFAULT_NAMESERVERS
    lines.append(_INDENT + '    nameservers:')
    lines.append(_INDENT + '      addresses: [%s]' % nameservers)
    return '\n'.join(lines)


def get_workload_network_config(resolver, settings):
    return _network_config(resolver, WORKLOAD, settings)


def get_frontend_network_config(resolver, settings):
    """Return the frontend entry, or '' when there is no frontend NIC."""
    if not resolver.is_present(FRONTEND):
        LOG.info("No frontend network device %s, skipping.", FRONTEND.pci)
        return ''
    return _network_config(resolver, FRONTEND, settings)
