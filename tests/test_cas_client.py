from unittest.mock import MagicMock
import pytest
import requests

from authdemo.clients import CasClient, CredentialsError
from authdemo.clients import cas
from authdemo.clients.cas import parse_service_response

SUCCESS = """<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
  <cas:authenticationSuccess>
    <cas:user>jdoe</cas:user>
    <cas:attributes>
      <cas:email>jdoe@example.com</cas:email>
      <cas:memberOf>staff</cas:memberOf>
      <cas:memberOf>admin</cas:memberOf>
    </cas:attributes>
  </cas:authenticationSuccess>
</cas:serviceResponse>"""

FAILURE = """<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
  <cas:authenticationFailure code="INVALID_TICKET">Ticket ST-1 not recognized</cas:authenticationFailure>
</cas:serviceResponse>"""

def cas_response(text, status_code=200):
  resp = MagicMock()
  resp.text = text
  resp.status_code = status_code
  if status_code >= 400:
    resp.raise_for_status.side_effect = requests.HTTPError(f'{status_code} error')
  return resp

def test_parse_success():
  user, attributes = parse_service_response(SUCCESS)
  assert user == 'jdoe'
  assert attributes == {'email': 'jdoe@example.com', 'memberOf': ['staff', 'admin']}

def test_parse_failure():
  with pytest.raises(CredentialsError, match='INVALID_TICKET'):
    parse_service_response(FAILURE)

def test_parse_garbage():
  with pytest.raises(CredentialsError):
    parse_service_response('<html>oops')

def test_prefix_url():
  assert CasClient('https://cas.example.org/cas/login').cas_prefix_url == 'https://cas.example.org/cas/'
  assert CasClient('https://cas.example.org/cas').cas_prefix_url == 'https://cas.example.org/cas/'

def test_cas_login(client, monkeypatch):
  get = MagicMock(return_value=cas_response(SUCCESS))
  monkeypatch.setattr(cas.requests, 'get', get)

  resp = client.get('/cas')
  assert resp.status_code == 302
  assert resp.headers['Location'] == (
    'https://casserverpac4j.herokuapp.com/login'
    '?service=http%3A%2F%2Flocalhost%2Fcallback%3Fclient_name%3DCasClient'
  )

  resp = client.get('/callback?client_name=CasClient&ticket=ST-1')
  assert resp.status_code == 302
  assert resp.headers['Location'] == 'http://localhost/cas'
  args, kwargs = get.call_args
  assert args == ('https://casserverpac4j.herokuapp.com/p3/serviceValidate',)
  assert kwargs['params'] == {'ticket': 'ST-1', 'service': 'http://localhost/callback?client_name=CasClient'}

  resp = client.get('/cas')
  assert b'Cas profile' in resp.data
  assert b'CasProfile#jdoe' in resp.data

def test_cas_rejected_ticket(client, monkeypatch):
  monkeypatch.setattr(cas.requests, 'get', MagicMock(return_value=cas_response(FAILURE)))
  assert client.get('/callback?client_name=CasClient&ticket=ST-1').status_code == 401

def test_cas_server_error(client, monkeypatch):
  monkeypatch.setattr(cas.requests, 'get', MagicMock(return_value=cas_response('', 500)))
  assert client.get('/callback?client_name=CasClient&ticket=ST-1').status_code == 401

def test_cas_without_ticket(client):
  assert client.get('/callback?client_name=CasClient').status_code == 401
