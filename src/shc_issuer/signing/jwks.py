"""Public key discovery document for verifiers.

Serves the issuer's JSON Web Key Set at ``/.well-known/jwks.json``. See
https://spec.smarthealth.cards/#determining-keys-associated-with-an-issuer
"""

from shc_issuer.signing.keys import PublicKeyIdentity


class JWKSPublisher:
    """Expose a key's JWK Set exactly as the key serializes it.
    
    The ``kid`` in the document is the same value placed in every JWS header
    signed with the key, so a verifier's lookup succeeds.
    """

    def __init__(self, identity: PublicKeyIdentity) -> None:
        self.identity = identity

    def jwks_json(self) -> bytes:
        """JWKS document bytes, verbatim from the key."""
        return self.identity.jwks_json()
