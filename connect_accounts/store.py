"""
Accounts and tokens as nodes in the graph store.

Layout in the graph::

    (:user {email, credential_hash, trust, default_collection})
        -[:MEMBER_OF]-> (:collection {name})
    (:token {value, issued}) -[:EMAIL_TOKEN | :RESET_TOKEN]-> (:user)

The store does not enforce unique emails. Lookups that match more than one
account or token are treated as failures rather than picking one of them.
"""

from typing import Any, List, Optional
import logging

from . import graph, tokens
from .domain import Account, TokenKind
from .graph import GraphStore, Node

logger = logging.getLogger(__name__)

USER = 'user'
COLLECTION = 'collection'
TOKEN = 'token'
MEMBER_OF = 'MEMBER_OF'

EMAIL = 'email'
CREDENTIAL_HASH = 'credential_hash'
TRUST = 'trust'
DEFAULT_COLLECTION = 'default_collection'

ACCOUNT_PROPERTIES = (EMAIL, CREDENTIAL_HASH, TRUST)
"""Account properties that may be changed after registration."""


def _to_account(node: Node) -> Account:
    return Account(
        email=node.properties[EMAIL],
        credential_hash=node.properties[CREDENTIAL_HASH],
        trust=node.properties.get(TRUST, 0),
        default_collection=node.properties.get(DEFAULT_COLLECTION)
    )


class IdentityStore(object):
    """Find, create, change and delete accounts and their tokens."""

    def __init__(self, graph_store: GraphStore) -> None:
        self.graph = graph_store

    @classmethod
    def from_config(cls) -> 'IdentityStore':
        return cls(GraphStore.from_config())

    def email_exists(self, email: str) -> bool:
        """Determine whether at least one account has ``email``."""
        with self.graph.transaction() as session:
            return bool(graph.match_nodes(session, USER, email=email))

    def find_account_by_email(self, email: str) -> Optional[Account]:
        """
        Get the account registered with ``email``.

        Returns
        -------
        :class:`.Account` or None
            None if there is no such account, or if the store holds more
            than one account with that address.

        """
        with self.graph.transaction() as session:
            nodes = graph.match_nodes(session, USER, email=email)
        if not nodes:
            logger.debug('No account found for email %s', email[:10])
            return None
        if len(nodes) > 1:
            logger.error('%i accounts with the same email %s', len(nodes),
                         email[:10])
            return None
        return _to_account(nodes[0])

    def create_account(self, email: str, credential_hash: str,
                       trust: int) -> Account:
        """
        Create an account together with its default collection.

        The caller must have checked that ``email`` is not registered, and
        must hold the registration lock while doing so.
        """
        with self.graph.transaction() as session:
            collection = graph.create_node(session, COLLECTION,
                                           {'name': 'default'})
            user = graph.create_node(session, USER, {
                EMAIL: email,
                CREDENTIAL_HASH: credential_hash,
                TRUST: int(trust),
                DEFAULT_COLLECTION: collection.node_id
            })
            graph.create_relationship(session, MEMBER_OF, user, collection)
        logger.debug('Created account for %s', email[:10])
        return _to_account(user)

    def delete_account(self, email: str) -> bool:
        """
        Delete an account, its relationships and any outstanding tokens.

        Deleting an address that is not registered is not an error.
        """
        with self.graph.transaction() as session:
            users = graph.match_nodes(session, USER, email=email)
            owned: List[Node] = []
            for kind in TokenKind:
                owned.extend(token for token, _ in graph.match_related(
                    session, TOKEN, kind.relationship, USER,
                    end_properties={EMAIL: email}
                ))
            deleted = graph.detach_delete(session, owned + users)
        logger.debug('Deleted %i nodes for %s', deleted, email[:10])
        return True

    def set_account_property(self, email: str, key: str, value: Any) -> int:
        """
        Set a single property on the account matching ``email``.

        Returns
        -------
        int
            Number of accounts that matched. Nothing is written when this is
            zero.

        """
        if key not in ACCOUNT_PROPERTIES:
            raise ValueError(f'Cannot change account property {key}')
        with self.graph.transaction() as session:
            nodes = graph.match_nodes(session, USER, for_update=True,
                                      email=email)
            return graph.set_property(session, nodes, key, value)

    def attach_token(self, kind: TokenKind, email: str) -> Optional[str]:
        """
        Mint a token of ``kind`` pointing at the account for ``email``.

        Returns
        -------
        str or None
            The token value, or None if no single account has ``email``.

        """
        value = tokens.generate_token()
        with self.graph.transaction() as session:
            users = graph.match_nodes(session, USER, email=email)
            if len(users) != 1:
                logger.debug('Cannot attach %s to %i accounts for %s',
                             kind.name, len(users), email[:10])
                return None
            token = graph.create_node(session, TOKEN, {
                'value': value,
                'issued': tokens.now()
            })
            graph.create_relationship(session, kind.relationship, token,
                                      users[0])
        return value

    def consume_token(self, kind: TokenKind, value: str,
                      max_age: Optional[int] = None) -> Optional[str]:
        """
        Use up a token and get the email address of its account.

        Matching tokens are deleted in the same transaction that reads them,
        so a token can only be consumed once.

        Parameters
        ----------
        kind : :class:`.TokenKind`
        value : str
        max_age : int
            Seconds after issuance beyond which the token is refused. A
            refused token is deleted all the same.

        Returns
        -------
        str or None
            None if the token does not exist, has expired, or is ambiguous.

        """
        with self.graph.transaction() as session:
            matches = graph.match_related(session, TOKEN, kind.relationship,
                                          USER, start_properties={'value': value},
                                          for_update=True)
            if not matches:
                return None
            found = [token for token, _ in matches]
            deleted = graph.detach_delete(session, found)
        if deleted < len({token.node_id for token in found}):
            logger.debug('%s token was consumed concurrently', kind.name)
            return None
        if len(matches) != 1:
            logger.error('%i accounts matched one %s token', len(matches),
                         kind.name)
            return None
        token, user = matches[0]
        if tokens.expired(token.properties.get('issued'), max_age):
            logger.debug('%s token has expired', kind.name)
            return None
        email: str = user.properties[EMAIL]
        return email
