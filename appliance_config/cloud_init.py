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

import base64
import logging
import os
from os import path
import re
import subprocess

from appliance_config import exception
from appliance_config import network
from appliance_config import ssl_pki

LOG = logging.getLogger(__name__)

TEMPLATE_DIR = path.join(path.dirname(path.abspath(__file__)), 'templates')
USERDATA_TEMPLATE = 'userdata.txt'
METADATA_TEMPLATE = 'metadata.txt'

ROOT_PWD_SALT = 'SaltSalt'


def check_for_existing_ovfenv(guestinfo):
    """Raise MissingOvfEnvironment if there is no ovfenv to process."""
    if guestinfo.get('ovfenv') == '':
        raise exception.MissingOvfEnvironment()


def check_for_existing_userdata(guestinfo):
    """Raise ExistingUserdata if userdata was supplied as an override."""
    if guestinfo.get('userdata') != '':
        raise exception.ExistingUserdata()


def escape_string(value):
    """Escape a value for a single-quoted YAML scalar."""
    return value.replace("'", "''")


def render_template(template, values):
    """Replace every placeholder of ``values`` in ``template``.

    All placeholders are substituted in a single pass and the values are
    inserted literally, so a value may contain placeholder names or
    regular expression syntax without being expanded again.

    :param template: template text
    :param values: mapping of placeholder to (already escaped) value
    :rtype: string
    """
    if not values:
        return template
    pattern = re.compile('|'.join(
        re.escape(placeholder)
        for placeholder in sorted(values, key=len, reverse=True)))
    return pattern.sub(lambda match: values[match.group(0)], template)


def load_template(name, template_dir=None):
    with open(path.join(template_dir or TEMPLATE_DIR, name)) as f:
        return f.read()


def hash_root_password(password):
    """MD5-crypt hash of the root password, as ``openssl passwd -1``."""
    # openssl hashes every line read from stdin separately
    if '\n' in password or '\r' in password:
        raise exception.MultilinePassword(key='appliance.root_pwd')
    return subprocess.check_output(
        ['openssl', 'passwd', '-1', '-salt', ROOT_PWD_SALT, '-stdin'],
        input=password, universal_newlines=True).strip()


def get_permit_root_login(settings):
    # ESXi client returns true, vSphere client returns True
    if settings.permit_root_login in ('true', 'True'):
        return 'yes'
    return 'no'


def userdata_values(settings):
    return {
        'ROOT_PWD_FROM_OVFENV': escape_string(
            hash_root_password(settings.root_pwd)),
        'PERMIT_ROOT_LOGIN': get_permit_root_login(settings),
        'HAPROXY_USER': escape_string(settings.haproxy_user),
        'HAPROXY_PWD': escape_string(settings.haproxy_pwd),
        'CREATE_DEFAULT_CA': (
            'true' if ssl_pki.get_create_default_ca(settings) else 'false'),
        'MANAGEMENT_NET_NAME': network.MANAGEMENT.name,
    }


def metadata_values(resolver, settings):
    return {
        'MGMT_CONFIG': network.get_management_network_config(
            resolver, settings),
        'WORKLOAD_CONFIG': network.get_workload_network_config(
            resolver, settings),
        'FRONTEND_CONFIG': network.get_frontend_network_config(
            resolver, settings),
    }


def render_userdata(settings, template_dir=None):
    return render_template(load_template(USERDATA_TEMPLATE, template_dir),
                           userdata_values(settings))


def render_metadata(resolver, settings, template_dir=None):
    return render_template(load_template(METADATA_TEMPLATE, template_dir),
                           metadata_values(resolver, settings))


def encode(rendered):
    return base64.b64encode(rendered.encode('utf-8')).decode('ascii')


def publish(guestinfo, key, rendered, encoded_path):
    """Persist the encoded payload and store it in guest info.

    The local copy is kept for post-mortem analysis and so that the
    metadata can be restored on later boots.
    """
    encoded = encode(rendered)
    directory = path.dirname(encoded_path)
    if not path.isdir(directory):
        os.makedirs(directory)
    with open(encoded_path, 'w') as f:
        f.write(encoded + '\n')
    LOG.debug("Wrote '%s'.", encoded_path)
    guestinfo.set_encoded(key, encoded)
    LOG.info("Published %s.", key)
    return encoded


def ensure_metadata(guestinfo, paths):
    """Restore the persisted metadata into guest info if it was wiped.

    The ovfenv is only present on first boot and guest info is cleared on
    power off, so on later boots the metadata is written back from the
    copy persisted on first boot.

    :return: True if the metadata was restored
    """
    if guestinfo.get('metadata') != '' or guestinfo.get('ovfenv') != '':
        return False
    if not path.isfile(paths.encoded_metadata):
        LOG.error("Metadata is missing from %s", paths.encoded_metadata)
        return False
    with open(paths.encoded_metadata) as f:
        encoded = f.read().strip()
    guestinfo.set_encoded('metadata', encoded)
    LOG.info("Restored metadata from %s", paths.encoded_metadata)
    return True
