from .base import (
  Client, CredentialsError, DirectClient, IndirectClient,
  TokenCredentials, UsernamePasswordCredentials,
)
from .http import (
  DirectBasicAuthClient, FormClient, IndirectBasicAuthClient,
  ParameterClient, SimpleTestUsernamePasswordAuthenticator,
)
from .oauth import FacebookClient, StravaClient, TwitterClient
from .oidc import OidcClient
from .saml import SAML2Client, SAML2ClientConfiguration
from .cas import CasClient
