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
import os
from os import path

from appliance_config import exception

# (attribute, OVF property key)
OVF_KEYS = (
    ('root_pwd', 'appliance.root_pwd'),
    ('permit_root_login', 'appliance.permit_root_login'),
    ('ca_cert', 'appliance.ca_cert'),
    ('ca_cert_key', 'appliance.ca_cert_key'),
    ('haproxy_user', 'loadbalance.haproxy_user'),
    ('haproxy_pwd', 'loadbalance.haproxy_pwd'),
    ('dataplane_port', 'loadbalance.dataplane_port'),
    ('service_ip_range', 'loadbalance.service_ip_range'),
    ('nameservers', 'network.nameservers'),
    ('management_ip', 'network.management_ip'),
    ('management_gateway', 'network.management_gateway'),
    ('workload_ip', 'network.workload_ip'),
    ('workload_gateway', 'network.workload_gateway'),
    ('frontend_ip', 'network.frontend_ip'),
    ('frontend_gateway', 'network.frontend_gateway'),
)

REQUIRED = ('root_pwd', 'haproxy_user', 'haproxy_pwd')

OVF_KEY_FOR = dict(OVF_KEYS)


def is_unset(value):
    return value is None or value == '' or value == 'null'


class ApplianceSettings(collections.namedtuple(
        'ApplianceSettings', [attr for attr, _ in OVF_KEYS])):
    """Values of the OVF environment this appliance understands.

    Unset values (empty or the literal string ``null``) are stored as
    ``None``.
    """
    __slots__ = ()

    @classmethod
    def create(cls, **values):
        fields = dict((attr, None) for attr in cls._fields)
        for attr, value in values.items():
            if attr not in fields:
                raise TypeError("Unknown setting '%s'" % attr)
            fields[attr] = None if is_unset(value) else value
        return cls(**fields)

    @classmethod
    def from_guestinfo(cls, guestinfo):
        """Read every known OVF property through the guest info adapter.

        :param guestinfo: guest info store
        :type  guestinfo: appliance_config.guestinfo.GuestInfo
        :rtype: ApplianceSettings
        """
        return cls.create(**dict((attr, guestinfo.get_ovf(key))
                                 for attr, key in OVF_KEYS))

    def missing_required(self):
        return [OVF_KEY_FOR[attr] for attr in REQUIRED
                if getattr(self, attr) is None]

    def validate(self):
        """Raise MissingOvfValues naming every unset required key."""
        missing = self.missing_required()
        if missing:
            raise exception.MissingOvfValues(missing)


class Paths(collections.namedtuple('Paths', [
        'data_plane_api_cfg',
        'sshd_config',
        'encoded_userdata',
        'encoded_metadata',
        'ca_crt',
        'ca_key',
        'anyip_cfg',
        'net_postconfig',
        'route_tables_cfg',
        'first_boot',
        'sys_class_net'])):
    """Filesystem locations touched by the provisioner."""
    __slots__ = ()

    @classmethod
    def rooted(cls, root='/'):
        """Return the default locations relocated under ``root``."""
        return cls(**dict((name, path.join(root, location.lstrip('/')))
                          for name, location in DEFAULT_PATHS.items()))

    def ensure_parent(self, name):
        directory = path.dirname(getattr(self, name))
        if not path.isdir(directory):
            os.makedirs(directory)


DEFAULT_PATHS = {
    'data_plane_api_cfg': '/etc/haproxy/dataplaneapi.cfg',
    'sshd_config': '/etc/ssh/sshd_config',
    'encoded_userdata': '/var/lib/vmware/encoded_userdata.txt',
    'encoded_metadata': '/var/lib/vmware/encoded_metadata.txt',
    'ca_crt': '/etc/haproxy/ca.crt',
    'ca_key': '/etc/haproxy/ca.key',
    'anyip_cfg': '/etc/vmware/anyip-routes.cfg',
    'net_postconfig': '/var/lib/vmware/net-postconfig.sh',
    'route_tables_cfg': '/etc/vmware/route-tables.cfg',
    'first_boot': '/var/lib/vmware/.ovf_to_cloud_init.done',
    'sys_class_net': '/sys/class/net',
}
