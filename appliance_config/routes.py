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
import os
from os import path

from appliance_config import network

LOG = logging.getLogger(__name__)

DEFAULT_ROUTE_COMMAND = (
    'ip route del $(ip route list | grep -E "default.*%s.*dhcp" '
    "| cut -d ' ' -f 1-5)")


def _append(file_path, lines):
    directory = path.dirname(file_path)
    if not path.isdir(directory):
        os.makedirs(directory)
    with open(file_path, 'a') as f:
        for line in lines:
            f.write(line + '\n')
    LOG.debug("Appended %d line(s) to '%s'.", len(lines), file_path)


def anyip_cidrs(service_ip_range):
    if not service_ip_range:
        return []
    return [cidr.strip() for cidr in service_ip_range.split(',')
            if cidr.strip()]


def write_anyip_config(settings, paths):
    """Persist the service CIDRs picked up by the anyip-routes service."""
    cidrs = anyip_cidrs(settings.service_ip_range)
    if cidrs:
        _append(paths.anyip_cfg, cidrs)
    return cidrs


def default_route_command(interface):
    return DEFAULT_ROUTE_COMMAND % interface


def disable_default_route(net, settings, paths):
    """Remove the DHCP default route of a network when it uses DHCP.

    Only the management network keeps a default route.
    """
    if getattr(settings, net.ip_attr) is not None:
        return False
    _append(paths.net_postconfig, [default_route_command(net.name)])
    return True


def route_table_entry(net, mac, ip, gateway):
    return '%s,%s,%s,%s,%s' % (net.route_table, net.name, mac, ip, gateway)


def write_route_table_config(resolver, net, settings, paths):
    """Add the network to the route-table service's config file.

    Nothing is written unless both a gateway and a static IP are set.
    """
    gateway = getattr(settings, net.gateway_attr)
    ip = getattr(settings, net.ip_attr)
    if gateway is None or ip is None:
        return None
    entry = route_table_entry(net, resolver.mac(net), ip, gateway)
    _append(paths.route_tables_cfg, [entry])
    return entry


def write_net_postconfig(resolver, settings, paths):
    """Write the actions run by the net-postconfig service."""
    networks = [network.WORKLOAD]
    if resolver.is_present(network.FRONTEND):
        networks.append(network.FRONTEND)
    for net in networks:
        disable_default_route(net, settings, paths)
        write_route_table_config(resolver, net, settings, paths)
