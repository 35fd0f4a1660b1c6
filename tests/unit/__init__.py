"""
Unit tests package.

One test module per issuer package. Tests run against real keys and real
QR rendering; only the signer, clock or failing collaborators are faked.
"""
