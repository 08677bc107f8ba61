# clients/saml.py
#
# SAML2 Service Provider client backed by PySAML2.
#
# - redirect(): SP-initiated login. An AuthnRequest is sent to the IdP with
#   the HTTP-Redirect binding; its id is kept in the session so the answer
#   can be matched.
# - get_credentials(): the IdP posts the SAMLResponse to the callback
#   (HTTP-POST binding); PySAML2 verifies signatures, audience and
#   conditions.
# - get_user_profile(): NameID becomes the profile id, the assertion
#   attributes (ava) become the profile attributes. Assertions whose
#   authentication instant is older than maximum_authentication_lifetime
#   are rejected.
#
# The SP metadata is generated at startup and written to
# service_provider_metadata_path so it can be handed to the IdP.

import calendar
import logging
import os
import time
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.backends import default_backend
from flask import redirect, request, session
from saml2 import BINDING_HTTP_POST, BINDING_HTTP_REDIRECT, SAMLError
from saml2.client import Saml2Client
from saml2.config import SPConfig
from saml2.metadata import create_metadata_string
from saml2.time_util import str_to_time
from saml2.validate import NotValid, ResponseLifetimeExceed, ToEarly

from ..profiles import SAML2Profile
from .base import CredentialsError, IndirectClient

logger = logging.getLogger(__name__)

OUTSTANDING_KEY = 'saml2.outstanding'

def decrypt_key(encrypted_key_path, password):
  """
  PySAML2 hands key_file to xmlsec1, which cannot read encrypted keys.
  Writes a decrypted copy next to the original and returns its path.
  """
  if not password:
    return encrypted_key_path
  root, ext = os.path.splitext(encrypted_key_path)
  fpath = f'{root}.dec{ext}'
  if not os.path.exists(fpath):
    with open(encrypted_key_path, 'rb') as f:
      encrypted_data = f.read()
    private_key = serialization.load_pem_private_key(
      encrypted_data,
      password=password.encode(),
      backend=default_backend()
    )
    with open(fpath, 'wb') as f:
      f.write(
        private_key.private_bytes(
          encoding=serialization.Encoding.PEM,
          format=serialization.PrivateFormat.TraditionalOpenSSL,
          encryption_algorithm=serialization.NoEncryption()
        )
      )
  return fpath


class SAML2ClientConfiguration:
  def __init__(self, key_file, key_password, cert_file, identity_provider_metadata_path):
    self.key_file = key_file
    self.key_password = key_password
    self.cert_file = cert_file
    self.identity_provider_metadata_path = identity_provider_metadata_path
    self.maximum_authentication_lifetime = 3600
    self.service_provider_entity_id = None
    self.service_provider_metadata_path = None
    self.xmlsec_path = 'xmlsec1'

  def metadata_source(self):
    path = self.identity_provider_metadata_path
    if path.startswith('http://') or path.startswith('https://'):
      return {'remote': [{'url': path}]}
    return {'local': [path]}


def build_sp_config(configuration, acs_url):
  """Returns the PySAML2 SP configuration dict for the given client configuration."""
  if not configuration.service_provider_entity_id:
    raise ValueError('SAML2 service provider entity id is required')
  return {
    'entityid': configuration.service_provider_entity_id,
    'description': 'authdemo Service Provider',
    'service': {
      'sp': {
        'endpoints': {
          'assertion_consumer_service': [
            (acs_url, BINDING_HTTP_POST),
          ],
        },
        'allow_unsolicited': True,
        'authn_requests_signed': True,
        'want_assertions_signed': True,
        'want_response_signed': False,
      }
    },
    'metadata': configuration.metadata_source(),
    'allow_unknown_attributes': True,
    'key_file': decrypt_key(configuration.key_file, configuration.key_password),
    'cert_file': configuration.cert_file,
    'xmlsec_path': configuration.xmlsec_path,
  }


class SAML2Client(IndirectClient):
  def __init__(self, configuration, name=None):
    super().__init__(name)
    self.configuration = configuration
    self.sp = None

  def init(self, auth):
    super().init(auth)
    config = SPConfig().load(build_sp_config(self.configuration, self.callback_url))
    self.sp = Saml2Client(config=config)
    path = self.configuration.service_provider_metadata_path
    if path:
      os.makedirs(os.path.dirname(path), exist_ok=True)
      with open(path, 'wb') as f:
        f.write(self.metadata())
      logger.info('SP metadata written to %s', path)

  def metadata(self):
    metadata = create_metadata_string(None, self.sp.config)
    return metadata if isinstance(metadata, bytes) else metadata.encode('utf-8')

  def redirect(self):
    reqid, info = self.sp.prepare_for_authenticate(binding=BINDING_HTTP_REDIRECT)
    outstanding = session.get(OUTSTANDING_KEY, {})
    outstanding[reqid] = request.url
    session[OUTSTANDING_KEY] = outstanding
    return redirect(dict(info['headers'])['Location'])

  def get_credentials(self):
    saml_response = request.form.get('SAMLResponse')
    if not saml_response:
      return None
    outstanding = session.pop(OUTSTANDING_KEY, {})
    try:
      authn_response = self.sp.parse_authn_request_response(
        saml_response,
        BINDING_HTTP_POST,
        outstanding=outstanding
      )
    except (SAMLError, NotValid, ResponseLifetimeExceed, ToEarly) as e:
      logger.warning('Invalid SAML response: %s', e)
      raise CredentialsError(f'Invalid SAML response: {e}') from e
    if authn_response is None:
      raise CredentialsError('Empty SAML response')
    if not getattr(authn_response, 'in_response_to', None):
      logger.info('IdP-initiated authentication: no in_response_to in SAML response')
    return authn_response

  def check_authentication_lifetime(self, authn_response):
    limit = self.configuration.maximum_authentication_lifetime
    now = time.time()
    for statement in getattr(authn_response.assertion, 'authn_statement', None) or []:
      if not statement.authn_instant:
        continue
      instant = calendar.timegm(str_to_time(statement.authn_instant))
      if now - instant > limit:
        raise CredentialsError(
          f'Authentication issued at {statement.authn_instant} is older than {limit} seconds'
        )

  def get_user_profile(self, authn_response):
    self.check_authentication_lifetime(authn_response)
    name_id = authn_response.name_id
    if name_id is None or not name_id.text:
      raise CredentialsError('SAML assertion has no NameID')
    profile = SAML2Profile(name_id.text, dict(authn_response.ava or {}))
    profile.add_attribute('name_id_format', name_id.format)
    return profile
