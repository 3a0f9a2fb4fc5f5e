# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or
# implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import argparse
import logging
import textwrap

from appliance_config.cmd.utils import environment
from appliance_config import exception
from appliance_config import guestinfo
from appliance_config import provision
from appliance_config import settings


def parse_args():
    description = textwrap.dedent("""
    Convert the OVF environment of the load balancer appliance into
    cloud-init user data and metadata.

    On first boot the OVF properties are read from guest info, the
    rendered user data and metadata are published back into guest info
    (base64 encoded) and persisted under /var/lib/vmware, SSH and the
    Data Plane API are bound to the management IP, and the CA, anyip,
    route table and network postconfig files are written.

    On later boots only the metadata is restored into guest info, since
    guest info is wiped on power off.
    """)

    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-r', '--root', dest='root', default='/',
                        help='directory the appliance filesystem is rooted '
                             'at (default: /)')
    parser.add_argument('-t', '--template-dir', dest='template_dir',
                        help='directory containing userdata.txt and '
                             'metadata.txt (default: bundled templates)')
    parser.add_argument('--rpctool', dest='rpctool',
                        default=guestinfo.RPCTOOL,
                        help='guest info tool (default: %(default)s)')
    environment._add_logging_arguments(parser)
    return parser.parse_args()


def main():
    args = parse_args()
    environment._configure_logging(args)

    try:
        provision.run(guestinfo.GuestInfo(args.rpctool),
                      settings.Paths.rooted(args.root),
                      template_dir=args.template_dir)
    except exception.ProvisioningSkipped as e:
        logging.info("%s", e)
    except Exception:
        logging.exception("Unexpected error during command execution")
        return 1
    return 0
