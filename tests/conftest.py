"""
Shared fixtures: a demo app with every client configured. PySAML2 is
replaced by mocks so no key files, IdP metadata or xmlsec1 are needed;
the other clients do not touch the network until a flow is started.
"""

import base64
from unittest.mock import MagicMock
import pytest

from authdemo import create_app
from authdemo.clients import saml

@pytest.fixture
def app(tmp_path, monkeypatch):
  monkeypatch.setattr(saml, 'SPConfig', MagicMock())
  monkeypatch.setattr(saml, 'Saml2Client', MagicMock(return_value=MagicMock()))
  monkeypatch.setattr(saml, 'create_metadata_string', MagicMock(return_value=b'<EntityDescriptor/>'))
  app = create_app({
    'TESTING': True,
    'SESSION_TYPE': None,
    'BASE_URL': 'http://localhost',
    'SAML_SP_METADATA_PATH': str(tmp_path / 'target' / 'sp-metadata.xml'),
    'LOG_LEVEL': 'DEBUG',
  })
  return app

@pytest.fixture
def client(app):
  return app.test_client()

@pytest.fixture
def auth(app):
  return app.extensions['auth']

def basic_header(username, password):
  encoded = base64.b64encode(f'{username}:{password}'.encode('utf-8')).decode('utf-8')
  return {'Authorization': f'Basic {encoded}'}

def form_login(client, username, password=None):
  return client.post(
    '/callback?client_name=FormClient',
    data={'username': username, 'password': username if password is None else password}
  )
