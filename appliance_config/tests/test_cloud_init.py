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
from os import path

import mock
import yaml

from appliance_config import cloud_init
from appliance_config import exception
from appliance_config import network
from appliance_config import settings
from appliance_config.tests import base

ROOT_PWD_HASH = '$1$SaltSalt$Jj0.KhvJvBbU4M0wh4Rg8/'


def _settings(**overrides):
    values = {
        'root_pwd': 'VMware1!',
        'haproxy_user': 'admin',
        'haproxy_pwd': 'haproxy',
        'management_ip': '10.0.0.2/24',
    }
    values.update(overrides)
    return settings.ApplianceSettings.create(**values)


class PreconditionTest(base.TestCase):

    def test_missing_ovfenv(self):
        self.assertRaises(exception.MissingOvfEnvironment,
                          cloud_init.check_for_existing_ovfenv,
                          base.FakeGuestInfo())

    def test_ovfenv_present(self):
        info = base.FakeGuestInfo({'ovfenv': '<Environment/>'})
        self.assertIsNone(cloud_init.check_for_existing_ovfenv(info))

    def test_existing_userdata(self):
        self.assertRaises(exception.ExistingUserdata,
                          cloud_init.check_for_existing_userdata,
                          base.FakeGuestInfo({'userdata': 'I2Nsb3Vk'}))

    def test_no_userdata(self):
        self.assertIsNone(cloud_init.check_for_existing_userdata(
            base.FakeGuestInfo()))


class RenderTemplateTest(base.TestCase):

    def test_escape_string(self):
        self.assertEqual("it''s", cloud_init.escape_string("it's"))
        self.assertEqual('a/b\\c', cloud_init.escape_string('a/b\\c'))

    def test_render_template(self):
        self.assertEqual(
            'user: admin\npwd: se/cr\\1t\n',
            cloud_init.render_template(
                'user: USER\npwd: PWD\n',
                {'USER': 'admin', 'PWD': 'se/cr\\1t'}))

    def test_values_are_not_substituted_again(self):
        self.assertEqual(
            'PWD PWD_VALUE',
            cloud_init.render_template('USER PWD',
                                       {'USER': 'PWD', 'PWD': 'PWD_VALUE'}))

    def test_longest_placeholder_wins(self):
        self.assertEqual(
            'a b',
            cloud_init.render_template('NAME NAME_LONG',
                                       {'NAME': 'a', 'NAME_LONG': 'b'}))

    def test_no_values(self):
        self.assertEqual('text', cloud_init.render_template('text', {}))


class UserdataTest(base.TestCase):

    def setUp(self):
        super(UserdataTest, self).setUp()
        patcher = mock.patch(
            'appliance_config.cloud_init.hash_root_password',
            return_value=ROOT_PWD_HASH)
        self.hash_mock = patcher.start()
        self.addCleanup(patcher.stop)

    def _render(self, **overrides):
        return yaml.safe_load(cloud_init.render_userdata(
            _settings(**overrides)))

    def test_render_userdata(self):
        userdata = self._render()
        self.hash_mock.assert_called_once_with('VMware1!')
        self.assertEqual(ROOT_PWD_HASH,
                         userdata['users'][0]['hashed_passwd'])
        files = dict((f['path'], f['content'])
                     for f in userdata['write_files'])
        self.assertEqual(
            'PermitRootLogin no\n',
            files['/etc/ssh/sshd_config.d/10-permit-root-login.conf'])
        self.assertEqual(
            'userlist controller\nuser admin insecure-password haproxy\n',
            files['/etc/haproxy/userlist.cfg'])
        self.assertEqual('mgmt\n',
                         files['/etc/vmware/management-interface'])
        self.assertIn('"true" = "true"', userdata['runcmd'][0])

    def test_quotes_in_credentials(self):
        userdata = self._render(haproxy_pwd="p'w")
        files = dict((f['path'], f['content'])
                     for f in userdata['write_files'])
        self.assertIn("insecure-password p'w\n",
                      files['/etc/haproxy/userlist.cfg'])

    def test_supplied_ca(self):
        userdata = self._render(ca_cert='cert', ca_cert_key='key')
        self.assertIn('"false" = "true"', userdata['runcmd'][0])

    def test_permit_root_login(self):
        for value, expected in (('true', 'yes'), ('True', 'yes'),
                                ('false', 'no'), (None, 'no')):
            self.assertEqual(expected, cloud_init.get_permit_root_login(
                _settings(permit_root_login=value)))

    def test_template_dir(self):
        template_dir = self.make_dir()
        self.write_file(path.join(template_dir, 'userdata.txt'),
                        'user=HAPROXY_USER\n')
        self.assertEqual('user=admin\n', cloud_init.render_userdata(
            _settings(), template_dir))


class HashRootPasswordTest(base.TestCase):

    @mock.patch('subprocess.check_output', return_value=ROOT_PWD_HASH + '\n')
    def test_hash_root_password(self, check_output):
        self.assertEqual(ROOT_PWD_HASH,
                         cloud_init.hash_root_password('VMware1!'))
        check_output.assert_called_once_with(
            ['openssl', 'passwd', '-1', '-salt', 'SaltSalt', '-stdin'],
            input='VMware1!', universal_newlines=True)

    @mock.patch('subprocess.check_output')
    def test_multiline_password(self, check_output):
        for password in ('two\nlines', 'carriage\rreturn'):
            e = self.assertRaises(exception.MultilinePassword,
                                  cloud_init.hash_root_password, password)
            self.assertIn('appliance.root_pwd', str(e))
            self.assertNotIn(password, str(e))
        check_output.assert_not_called()


class MetadataTest(base.TestCase):

    def _render(self, devices=None, **overrides):
        resolver = network.NetworkResolver(
            self.make_sysfs(self.make_dir(), devices))
        return yaml.safe_load(cloud_init.render_metadata(
            resolver, _settings(**overrides)))

    def test_render_metadata(self):
        metadata = self._render(frontend_ip='10.1.0.2/24')
        self.assertEqual('haproxy', metadata['instance-id'])
        self.assertEqual(2, metadata['network']['version'])
        ethernets = metadata['network']['ethernets']
        self.assertEqual(['id0', 'id1', 'id2'], sorted(ethernets))
        self.assertEqual(['10.0.0.2/24'], ethernets['id0']['addresses'])
        self.assertTrue(ethernets['id1']['dhcp4'])
        self.assertEqual('frontend', ethernets['id2']['set-name'])

    def test_render_metadata_without_frontend(self):
        devices = dict(base.DEVICES)
        del devices['eth2']
        ethernets = self._render(devices)['network']['ethernets']
        self.assertEqual(['id0', 'id1'], sorted(ethernets))


class PublishTest(base.TestCase):

    def test_publish(self):
        info = base.FakeGuestInfo()
        encoded_path = path.join(self.make_dir(), 'var', 'encoded.txt')
        encoded = cloud_init.publish(info, 'metadata', 'network: {}\n',
                                     encoded_path)
        self.assertEqual('network: {}\n',
                         base64.b64decode(encoded).decode('utf-8'))
        self.assertEqual(encoded + '\n', self.read_file(encoded_path))
        self.assertEqual(encoded, info.guestinfo['metadata'])
        self.assertEqual('base64', info.guestinfo['metadata.encoding'])


class EnsureMetadataTest(base.TestCase):

    def setUp(self):
        super(EnsureMetadataTest, self).setUp()
        self.paths = settings.Paths.rooted(self.make_dir())

    def test_restore(self):
        self.write_file(self.paths.encoded_metadata, 'bmV0d29yaw==\n')
        info = base.FakeGuestInfo()
        self.assertTrue(cloud_init.ensure_metadata(info, self.paths))
        self.assertEqual({'metadata': 'bmV0d29yaw==',
                          'metadata.encoding': 'base64'}, info.guestinfo)

    def test_restore_is_repeatable(self):
        self.write_file(self.paths.encoded_metadata, 'bmV0d29yaw==\n')
        for _ in range(2):
            info = base.FakeGuestInfo()
            self.assertTrue(cloud_init.ensure_metadata(info, self.paths))
            self.assertEqual('bmV0d29yaw==', info.guestinfo['metadata'])

    def test_metadata_present(self):
        self.write_file(self.paths.encoded_metadata, 'bmV0d29yaw==\n')
        info = base.FakeGuestInfo({'metadata': 'b2xk'})
        self.assertFalse(cloud_init.ensure_metadata(info, self.paths))
        self.assertEqual({'metadata': 'b2xk'}, info.guestinfo)

    def test_ovfenv_present(self):
        info = base.FakeGuestInfo({'ovfenv': '<Environment/>'})
        self.assertFalse(cloud_init.ensure_metadata(info, self.paths))
        self.assertNotIn('metadata', info.guestinfo)

    def test_persisted_copy_missing(self):
        info = base.FakeGuestInfo()
        self.assertFalse(cloud_init.ensure_metadata(info, self.paths))
        self.assertEqual({}, info.guestinfo)
