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

import datetime
import logging
import os
from os import path
import re
import shutil
import stat
import tempfile

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID
from OpenSSL import crypto

from appliance_config import exception

LOG = logging.getLogger(__name__)

CA_KEY_SIZE = 2048
CA_CERT_DAYS = 10 * 365
CA_FILE_PREFIX = 'ca'
CA_FILE_MODE = (stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP | stat.S_IROTH)

REQUEST_CONFIG = """\
[ req ]
default_bits           = %(bits)d
encrypt_key            = no
default_md             = sha256
prompt                 = no
utf8                   = yes
distinguished_name     = dn
req_extensions         = ext
x509_extensions        = ext

[ dn ]
countryName            = %(country)s
stateOrProvinceName    = %(state)s
localityName           = %(locality)s
organizationName       = %(organization)s
organizationalUnitName = %(organizational_unit)s
commonName             = %(common_name)s

[ ext ]
basicConstraints       = critical, CA:TRUE
keyUsage               = critical, cRLSign, digitalSignature, keyCertSign
subjectKeyIdentifier   = hash
"""

_PEM_BOUNDARY = re.compile(r'(-----(?:BEGIN|END) [A-Z0-9 ]+-----)')


def get_create_default_ca(settings):
    """Whether a default CA has to be generated on the appliance.

    Both the CA certificate and its key have to be supplied in the OVF
    environment, otherwise a default CA is created.
    """
    return settings.ca_cert is None or settings.ca_cert_key is None


def format_certificate(contents):
    """Restore the line breaks of a PEM document.

    Certificates pasted into the OVF properties have their newlines turned
    into spaces. Spaces outside of the BEGIN/END boundaries are turned back
    into newlines. Formatting an already formatted document is a no-op.
    """
    parts = _PEM_BOUNDARY.split(contents.strip())
    # boundaries are at the odd indexes
    for index in range(0, len(parts), 2):
        parts[index] = parts[index].replace(' ', '\n')
    return ''.join(parts) + '\n'


def write_cert_file(contents, file_path, mode=CA_FILE_MODE):
    directory = path.dirname(file_path)
    if not path.isdir(directory):
        os.makedirs(directory)
    with open(file_path, 'w') as f:
        f.write(format_certificate(contents))
    os.chmod(file_path, mode)
    LOG.debug("Wrote '%s'.", path.abspath(file_path))


def write_ca_files(settings, paths):
    """Write the CA certificate and key supplied in the OVF environment.

    They are not passed through cloud-init because the user data is
    visible in the VM's guest info. When a default CA is needed nothing is
    written here; the user data runs ``new-ca`` instead.

    :return: True if the files were written
    """
    if get_create_default_ca(settings):
        LOG.info("No CA in the OVF environment, a default CA will be "
                 "created.")
        return False
    write_cert_file(settings.ca_cert, paths.ca_crt)
    write_cert_file(settings.ca_cert_key, paths.ca_key)
    return True


class CertificateRequest(object):
    """Distinguished name and parameters of a self-signed CA."""

    def __init__(self, common_name, country='US', state='California',
                 locality='Palo Alto', organization='VMware',
                 organizational_unit='CAPV', bits=CA_KEY_SIZE,
                 days=CA_CERT_DAYS):
        self.common_name = common_name
        self.country = country
        self.state = state
        self.locality = locality
        self.organization = organization
        self.organizational_unit = organizational_unit
        self.bits = bits
        self.days = days

    def subject(self):
        return x509.Name([
            x509.NameAttribute(NameOID.COUNTRY_NAME, self.country),
            x509.NameAttribute(NameOID.STATE_OR_PROVINCE_NAME, self.state),
            x509.NameAttribute(NameOID.LOCALITY_NAME, self.locality),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, self.organization),
            x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME,
                               self.organizational_unit),
            x509.NameAttribute(NameOID.COMMON_NAME, self.common_name),
        ])

    def config(self):
        """Render the request as an openssl ``req`` configuration."""
        return REQUEST_CONFIG % vars(self)


def create_ca_pair(request):
    """Create CA private key and self-signed certificate.

    :param request: subject and parameters of the CA
    :type  request: CertificateRequest
    :return: (ca_key_pem, ca_cert_pem) tuple of the CA private key and CA
             certificate (PEM format)
    :rtype:  (bytes, bytes)
    """
    ca_key = crypto.PKey()
    ca_key.generate_key(crypto.TYPE_RSA, request.bits)
    LOG.debug('Generated CA key.')

    key = ca_key.to_cryptography_key()
    subject = request.subject()
    now = datetime.datetime.now(datetime.timezone.utc)
    ski = x509.SubjectKeyIdentifier.from_public_key(key.public_key())
    usage = x509.KeyUsage(
        digital_signature=True,
        content_commitment=False,
        key_encipherment=False,
        data_encipherment=False,
        key_agreement=False,
        key_cert_sign=True,
        crl_sign=True,
        encipher_only=False,
        decipher_only=False,
    )
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=request.days))
        .public_key(key.public_key())
        .add_extension(x509.BasicConstraints(ca=True, path_length=None),
                       critical=True)
        .add_extension(usage, critical=True)
        .add_extension(ski, critical=False)
        .sign(key, hashes.SHA256()))
    ca_cert = crypto.X509.from_cryptography(cert)
    LOG.debug('Generated CA certificate.')

    return (crypto.dump_privatekey(crypto.FILETYPE_PEM, ca_key),
            crypto.dump_certificate(crypto.FILETYPE_PEM, ca_cert))


def fix_private_key(key_path):
    """Rewrite a private key in the traditional OpenSSL RSA format."""
    with open(key_path, 'rb') as f:
        key = serialization.load_pem_private_key(f.read(), password=None)
    fixed_path = key_path + '.fixed'
    _write_pki_file(fixed_path, key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption()))
    os.replace(fixed_path, key_path)


def describe_certificate(cert_path):
    with open(cert_path, 'rb') as f:
        cert = crypto.load_certificate(crypto.FILETYPE_PEM, f.read())
    return crypto.dump_certificate(crypto.FILETYPE_TEXT, cert).decode()


def _verify_pair(cert_path, key_path):
    for file_path in (cert_path, key_path):
        if not path.isfile(file_path):
            raise exception.CertificateGenerationFailed(
                reason="'%s' is missing" % path.basename(file_path))
    try:
        with open(cert_path, 'rb') as f:
            crypto.load_certificate(crypto.FILETYPE_PEM, f.read())
        with open(key_path, 'rb') as f:
            crypto.load_privatekey(crypto.FILETYPE_PEM, f.read())
    except crypto.Error as e:
        raise exception.CertificateGenerationFailed(reason=str(e))


def create_and_write_ca(request, directory, prefix=CA_FILE_PREFIX,
                        overwrite=True):
    """Create and write out a self-signed CA certificate and private key.

    The pair is generated in a temporary directory which is removed
    afterwards whether generation succeeded or not; only a verified pair
    is copied to ``directory`` as <prefix>.crt and <prefix>.key.

    :param request: subject and parameters of the CA
    :type  request: CertificateRequest
    :param directory: directory where key and cert will be written
    :type  directory: string
    :param prefix: file name prefix of the key and cert
    :type  prefix: string
    :param overwrite: overwrite an existing key and cert
    :type  overwrite: boolean
    :return: True if a new pair was written
    """
    cert_name = '%s.crt' % prefix
    key_name = '%s.key' % prefix
    if not path.isdir(directory):
        os.makedirs(directory)

    if (not overwrite and path.isfile(path.join(directory, cert_name)) and
            path.isfile(path.join(directory, key_name))):
        LOG.info("Existing %s and %s exist in %s. Skipping cert "
                 "generation.", cert_name, key_name, directory)
        return False

    LOG.debug("Request configuration:\n%s", request.config())
    tmp_dir = tempfile.mkdtemp()
    try:
        tmp_cert = path.join(tmp_dir, cert_name)
        tmp_key = path.join(tmp_dir, key_name)
        key_pem, cert_pem = create_ca_pair(request)
        _write_pki_file(tmp_key, key_pem)
        _write_pki_file(tmp_cert, cert_pem, CA_FILE_MODE)
        fix_private_key(tmp_key)
        _verify_pair(tmp_cert, tmp_key)

        shutil.copy(tmp_cert, path.join(directory, cert_name))
        shutil.copy(tmp_key, path.join(directory, key_name))
        LOG.info("Wrote %s and %s to %s.", cert_name, key_name,
                 path.abspath(directory))
        if LOG.isEnabledFor(logging.DEBUG):
            LOG.debug("Certificate:\n%s",
                      describe_certificate(path.join(directory, cert_name)))
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)
    return True


def _write_pki_file(file_path, contents, mode=stat.S_IRUSR | stat.S_IWUSR):
    with open(file_path, 'wb') as f:
        f.write(contents)
    os.chmod(file_path, mode)
    LOG.debug("Wrote '%s'.", path.abspath(file_path))
