# clients/cas.py
#
# CAS (Central Authentication Service) client, protocol 3.0.
#
# The user is sent to the CAS login page with our callback as "service".
# CAS sends them back with a one-time "ticket", which is checked against
# <cas prefix>/p3/serviceValidate. The XML answer carries the user name and
# the released attributes:
#
#   <cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
#     <cas:authenticationSuccess>
#       <cas:user>jdoe</cas:user>
#       <cas:attributes><cas:email>jdoe@example.com</cas:email></cas:attributes>
#     </cas:authenticationSuccess>
#   </cas:serviceResponse>

import logging
from urllib.parse import urlencode
from xml.etree import ElementTree as ET
import requests
from flask import redirect, request

from ..profiles import CasProfile
from .base import CredentialsError, IndirectClient, TokenCredentials

logger = logging.getLogger(__name__)

CAS_NS = '{http://www.yale.edu/tp/cas}'

def parse_service_response(xml_text):
  """
  Parses a serviceValidate answer. Returns (user, attributes) or raises
  CredentialsError with the CAS failure code.
  """
  try:
    root = ET.fromstring(xml_text)
  except ET.ParseError as e:
    raise CredentialsError(f'Unparsable CAS response: {e}') from e
  failure = root.find(f'{CAS_NS}authenticationFailure')
  if failure is not None:
    code = failure.get('code', 'UNKNOWN')
    raise CredentialsError(f'CAS validation failed: {code} {(failure.text or "").strip()}'.strip())
  success = root.find(f'{CAS_NS}authenticationSuccess')
  user = success.find(f'{CAS_NS}user') if success is not None else None
  if user is None or not (user.text or '').strip():
    raise CredentialsError('CAS response has no user')
  attributes = {}
  container = success.find(f'{CAS_NS}attributes')
  if container is not None:
    for element in container:
      key = element.tag.replace(CAS_NS, '')
      value = (element.text or '').strip()
      # Multi-valued attributes repeat the element
      if key in attributes:
        previous = attributes[key]
        attributes[key] = (previous if isinstance(previous, list) else [previous]) + [value]
      else:
        attributes[key] = value
  return user.text.strip(), attributes


class CasClient(IndirectClient):
  def __init__(self, cas_login_url=None, timeout=10, verify=True, name=None):
    super().__init__(name)
    self.cas_login_url = cas_login_url
    self.timeout = timeout
    self.verify = verify

  @property
  def cas_prefix_url(self):
    url = self.cas_login_url
    if url.endswith('login'):
      url = url[:-len('login')]
    return url if url.endswith('/') else url + '/'

  def init(self, auth):
    if not self.cas_login_url:
      raise ValueError(f'{self.name}: CAS login URL is required')
    super().init(auth)

  def redirect(self):
    return redirect(f'{self.cas_login_url}?{urlencode({"service": self.callback_url})}')

  def get_credentials(self):
    ticket = request.args.get('ticket')
    if not ticket:
      return None
    return TokenCredentials(ticket)

  def get_user_profile(self, credentials):
    params = {'ticket': credentials.token, 'service': self.callback_url}
    try:
      resp = requests.get(
        self.cas_prefix_url + 'p3/serviceValidate',
        params=params,
        timeout=self.timeout,
        verify=self.verify
      )
      resp.raise_for_status()
    except requests.RequestException as e:
      logger.warning('CAS ticket validation failed: %s', e)
      raise CredentialsError(f'CAS ticket validation failed: {e}') from e
    user, attributes = parse_service_response(resp.text)
    return CasProfile(user, attributes)
