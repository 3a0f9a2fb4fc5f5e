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
import os
import sys
import textwrap

from appliance_config.cmd.utils import environment
from appliance_config import ssl_pki


class _ArgumentParser(argparse.ArgumentParser):

    def error(self, message):
        # every usage error is reported with exit code 1
        self.print_usage(sys.stderr)
        self.exit(1, '%s: error: %s\n' % (self.prog, message))


def _positive_int(value):
    try:
        number = int(value)
    except ValueError:
        number = 0
    if number <= 0:
        raise argparse.ArgumentTypeError(
            "%r is not a positive integer" % value)
    return number


def parse_args():
    description = textwrap.dedent("""
    Create a self-signed certificate authority and write its public and
    private keys as two PEM-encoded files, <prefix>.crt and <prefix>.key.

    COMMON_NAME is the certificate's common name. OUT_DIR is the
    directory the files are written to; it defaults to the working
    directory.
    """)

    parser = _ArgumentParser(
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-c', dest='country', default='US',
                        help='country (default: %(default)s)')
    parser.add_argument('-s', dest='state', default='California',
                        help='state or province (default: %(default)s)')
    parser.add_argument('-l', dest='locality', default='Palo Alto',
                        help='locality (default: %(default)s)')
    parser.add_argument('-o', dest='organization', default='VMware',
                        help='organization (default: %(default)s)')
    parser.add_argument('-u', dest='organizational_unit', default='CAPV',
                        help='organizational unit (default: %(default)s)')
    parser.add_argument('-b', dest='bits', type=_positive_int,
                        default=ssl_pki.CA_KEY_SIZE,
                        help='bit size (default: %(default)s)')
    parser.add_argument('-d', dest='days', type=_positive_int,
                        default=ssl_pki.CA_CERT_DAYS,
                        help='days until expiry (default: %(default)s)')
    parser.add_argument('-f', dest='prefix', default=ssl_pki.CA_FILE_PREFIX,
                        help='file name prefix (default: %(default)s)')
    parser.add_argument('-n', dest='no_overwrite', action='store_true',
                        help='skip overwriting a certificate and key if '
                             'they already exist')
    parser.add_argument('-v', dest='verbose', action='store_true',
                        help='print the request configuration and the '
                             'generated certificate')
    parser.add_argument('common_name', metavar='COMMON_NAME',
                        help="the certificate's common name")
    parser.add_argument('out_dir', metavar='OUT_DIR', nargs='?',
                        help='directory to write the key and certificate '
                             'to (default: working directory)')
    return parser.parse_args()


def main():
    args = parse_args()
    args.debug = args.verbose
    environment._configure_logging(args)

    request = ssl_pki.CertificateRequest(
        args.common_name,
        country=args.country,
        state=args.state,
        locality=args.locality,
        organization=args.organization,
        organizational_unit=args.organizational_unit,
        bits=args.bits,
        days=args.days)
    try:
        ssl_pki.create_and_write_ca(request, args.out_dir or os.getcwd(),
                                    prefix=args.prefix,
                                    overwrite=not args.no_overwrite)
    except Exception:
        logging.exception("Unexpected error during command execution")
        return 1
    return 0
