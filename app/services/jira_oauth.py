"""Per-user Jira OAuth 1.0a sessions"""
import logging
import os
from typing import Dict, Optional, Tuple, Union
from urllib.parse import quote

import requests
from jira import JIRA
from oauthlib.oauth1 import SIGNATURE_RSA
from requests_oauthlib import OAuth1Session
from requests_oauthlib.oauth1_session import TokenMissing, TokenRequestDenied
from sqlalchemy.orm import Session

from app.config import settings
from app.models import TicketSystem, User, UserTicketSystem
from app.services.exceptions import JiraApiError, JiraConfigurationError, RemoteUnavailable
from app.services.jira_client import JiraClient
from app.services.sync_types import AuthorizationFailed, NeedsReauthorization

logger = logging.getLogger(__name__)

REQUEST_TOKEN_PATH = "/plugins/servlet/oauth/request-token"
ACCESS_TOKEN_PATH = "/plugins/servlet/oauth/access-token"
AUTHORIZE_PATH = "/plugins/servlet/oauth/authorize"

# Access token value while the user has not finished the handshake yet.
TOKEN_REQUEST_UNFINISHED = "token_request_unfinished"


class JiraOAuthSessionManager:
    """Hands out authorized JiraClients and drives the OAuth handshake.

    Token pairs are stored per (user, ticket system) in users_ticket_systems.
    Clients are cached per (user, ticket system) for the lifetime of the
    manager, which is scoped to one request or batch run.
    """

    def __init__(self, db: Session, jira_factory=JIRA, oauth_session_factory=OAuth1Session):
        self.db = db
        self.jira_factory = jira_factory
        self.oauth_session_factory = oauth_session_factory
        self._clients: Dict[Tuple[int, int], JiraClient] = {}

    # URLs

    @staticmethod
    def _base_url(ticket_system: TicketSystem) -> str:
        return (ticket_system.url or "").rstrip("/")

    def callback_url(self, ticket_system: TicketSystem) -> str:
        return f"{settings.public_base_url.rstrip('/')}/jiraoauthcallback?tsid={ticket_system.id}"

    def authorize_url(self, ticket_system: TicketSystem, oauth_token: str) -> str:
        return f"{self._base_url(ticket_system)}{AUTHORIZE_PATH}?oauth_token={quote(oauth_token, safe='')}"

    # Consumer certificate

    @staticmethod
    def private_key(ticket_system: TicketSystem) -> str:
        """RSA private key of the OAuth consumer (inline PEM or PEM file path)."""
        secret = (ticket_system.oauth_consumer_secret or "").strip()
        if secret.startswith("-----BEGIN") and "PRIVATE KEY" in secret:
            return secret
        if secret and os.path.isfile(secret):
            with open(secret, "r", encoding="utf-8") as fh:
                return fh.read()
        raise JiraConfigurationError(
            "Invalid certificate, fix your certificate information in ticket system "
            f'settings for: "{ticket_system.name}"'
        )

    # Stored tokens

    def _user_ticket_system(self, user: User, ticket_system: TicketSystem) -> Optional[UserTicketSystem]:
        return (
            self.db.query(UserTicketSystem)
            .filter(
                UserTicketSystem.user_id == user.id,
                UserTicketSystem.ticket_system_id == ticket_system.id,
            )
            .first()
        )

    def _store_tokens(
        self,
        user: User,
        ticket_system: TicketSystem,
        token_secret: str,
        access_token: str = TOKEN_REQUEST_UNFINISHED,
        avoid_connection: bool = False,
    ) -> UserTicketSystem:
        uts = self._user_ticket_system(user, ticket_system)
        if uts is None:
            uts = UserTicketSystem(user_id=user.id, ticket_system_id=ticket_system.id)
            self.db.add(uts)
        uts.token_secret = token_secret
        uts.access_token = access_token
        uts.avoid_connection = avoid_connection
        self.db.commit()
        self._clients.pop((user.id, ticket_system.id), None)
        return uts

    def check_user_ticket_system(self, user: User, ticket_system: TicketSystem) -> bool:
        """Whether work logs should be written for this user at all."""
        if not ticket_system.book_time:
            return False
        uts = self._user_ticket_system(user, ticket_system)
        return uts is None or not uts.avoid_connection

    # Clients

    def get_authorized_client(
        self, user: User, ticket_system: TicketSystem
    ) -> Union[JiraClient, NeedsReauthorization]:
        key = (user.id, ticket_system.id)
        if key in self._clients:
            return self._clients[key]

        uts = self._user_ticket_system(user, ticket_system)
        if (
            uts is None
            or not uts.access_token
            or not uts.token_secret
            or uts.access_token == TOKEN_REQUEST_UNFINISHED
        ):
            logger.info(f"No Jira grant for user {user.id} on {ticket_system.name}, starting handshake")
            return self.request_authorization(user, ticket_system)

        jira = self.jira_factory(
            server=self._base_url(ticket_system),
            oauth={
                "access_token": uts.access_token,
                "access_token_secret": uts.token_secret,
                "consumer_key": ticket_system.oauth_consumer_key or "",
                "key_cert": self.private_key(ticket_system),
            },
            get_server_info=False,
        )
        client = JiraClient(
            self._base_url(ticket_system),
            jira,
            on_unauthorized=lambda: self._on_unauthorized(user, ticket_system),
        )
        self._clients[key] = client
        return client

    def _on_unauthorized(self, user: User, ticket_system: TicketSystem) -> NeedsReauthorization:
        self._clients.pop((user.id, ticket_system.id), None)
        return self.request_authorization(user, ticket_system)

    # Handshake

    def _fetch_tokens(self, oauth: OAuth1Session, url: str, step: str) -> Dict[str, str]:
        try:
            if step == "request":
                return oauth.fetch_request_token(url)
            return oauth.fetch_access_token(url)
        except (TokenRequestDenied, TokenMissing) as e:
            logger.error(f"Jira OAuth {step} token failed at {url}: {e}")
            raise RemoteUnavailable(f"OAuth {step} token failed: {e}", getattr(e, "status_code", None)) from e
        except requests.RequestException as e:
            logger.error(f"Jira OAuth {step} token failed at {url}: {e}")
            raise RemoteUnavailable(f"OAuth {step} token failed: {e}") from e

    def request_authorization(self, user: User, ticket_system: TicketSystem) -> NeedsReauthorization:
        """Fetch a request token and return where the user has to confirm it."""
        oauth = self.oauth_session_factory(
            ticket_system.oauth_consumer_key or "",
            signature_method=SIGNATURE_RSA,
            rsa_key=self.private_key(ticket_system),
            callback_uri=self.callback_url(ticket_system),
        )
        tokens = self._fetch_tokens(oauth, self._base_url(ticket_system) + REQUEST_TOKEN_PATH, "request")
        request_token = tokens.get("oauth_token") or ""
        self._store_tokens(
            user,
            ticket_system,
            token_secret=tokens.get("oauth_token_secret") or "",
            access_token=request_token,
        )
        return NeedsReauthorization(self.authorize_url(ticket_system, request_token))

    def complete_authorization(
        self,
        user: User,
        ticket_system: TicketSystem,
        request_token: str,
        verifier: str,
    ) -> Union[JiraClient, AuthorizationFailed, NeedsReauthorization]:
        """Exchange a confirmed request token for the user's access token."""
        if verifier == "denied":
            self._store_tokens(user, ticket_system, "", "", avoid_connection=True)
            logger.info(f"User {user.id} denied Jira access for {ticket_system.name}")
            return AuthorizationFailed(
                f"Access to {ticket_system.name} was denied; work logs will not be synced."
            )

        uts = self._user_ticket_system(user, ticket_system)
        request_secret = uts.token_secret if uts is not None and uts.access_token == request_token else ""

        try:
            oauth = self.oauth_session_factory(
                ticket_system.oauth_consumer_key or "",
                resource_owner_key=request_token,
                resource_owner_secret=request_secret,
                verifier=verifier,
                signature_method=SIGNATURE_RSA,
                rsa_key=self.private_key(ticket_system),
            )
            tokens = self._fetch_tokens(oauth, self._base_url(ticket_system) + ACCESS_TOKEN_PATH, "access")
        except JiraApiError as e:
            return AuthorizationFailed(str(e))

        access_token = tokens.get("oauth_token") or ""
        token_secret = tokens.get("oauth_token_secret") or ""
        if not access_token or not token_secret:
            return AuthorizationFailed("An unknown error occurred while requesting OAuth token.")

        self._store_tokens(user, ticket_system, token_secret=token_secret, access_token=access_token)
        logger.info(f"Stored Jira access token of user {user.id} for {ticket_system.name}")
        return self.get_authorized_client(user, ticket_system)
