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
from os import path

from appliance_config import cloud_init
from appliance_config import network
from appliance_config import routes
from appliance_config import services
from appliance_config import settings as appliance_settings
from appliance_config import ssl_pki

LOG = logging.getLogger(__name__)


def provision(guestinfo, paths, template_dir=None):
    """Turn the OVF environment into cloud-init data and appliance config.

    Everything that can fail on bad input is computed before the first
    change is made; once applying has started a failure is not rolled
    back.

    :param guestinfo: guest info store
    :type  guestinfo: appliance_config.guestinfo.GuestInfo
    :param paths: filesystem locations to write to
    :type  paths: appliance_config.settings.Paths
    :param template_dir: directory holding userdata.txt and metadata.txt
    :raises: ProvisioningSkipped when there is nothing to do
    """
    cloud_init.check_for_existing_ovfenv(guestinfo)
    cloud_init.check_for_existing_userdata(guestinfo)
    settings = appliance_settings.ApplianceSettings.from_guestinfo(guestinfo)
    settings.validate()

    resolver = network.NetworkResolver(paths.sys_class_net)
    userdata = cloud_init.render_userdata(settings, template_dir)
    metadata = cloud_init.render_metadata(resolver, settings, template_dir)
    services.get_management_address(settings)
    services.get_dataplane_api_port(settings)

    cloud_init.publish(guestinfo, 'userdata', userdata,
                       paths.encoded_userdata)
    cloud_init.publish(guestinfo, 'metadata', metadata,
                       paths.encoded_metadata)
    services.bind_services_to_management_ip(settings, paths)
    services.set_dataplane_api_port(settings, paths)
    ssl_pki.write_ca_files(settings, paths)
    routes.write_anyip_config(settings, paths)
    routes.write_net_postconfig(resolver, settings, paths)
    LOG.info("Provisioning from the OVF environment completed.")


def run(guestinfo, paths, template_dir=None):
    """Provision on first boot, refresh the metadata on later boots.

    :return: True if this was the first boot
    """
    if path.isfile(paths.first_boot):
        LOG.info("First boot already completed, refreshing metadata.")
        cloud_init.ensure_metadata(guestinfo, paths)
        return False

    paths.ensure_parent('first_boot')
    open(paths.first_boot, 'a').close()
    provision(guestinfo, paths, template_dir)
    return True
