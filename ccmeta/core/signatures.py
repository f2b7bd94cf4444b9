"""BEP 35 torrent signatures.

A signed torrent carries a top-level ``signatures`` dictionary keyed by
signer name::

    signatures:
        <name>:
            certificate  DER X.509 certificate (optional)
            info         extension dictionary covered by the signature (optional)
            signature    signature over the info dictionary and ``info``

Only the structure is parsed. Checking a signature against a certificate is
left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping

from ccmeta.core import fields
from ccmeta.models import UnknownFieldPolicy
from ccmeta.utils.exceptions import SchemaError, SchemaErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signature:
    """One signer's entry in ``signatures``."""

    signature: bytes
    certificate: bytes | None = None
    info: Mapping[bytes, Any] | None = None
    extra: Mapping[bytes, Any] = field(default_factory=dict)

    KNOWN_KEYS: ClassVar[frozenset[bytes]] = frozenset(
        {b"certificate", b"info", b"signature"}
    )

    def __post_init__(self) -> None:
        """Validate field types and freeze the mappings."""
        fields.as_bytes(self.signature, "signature")
        if not self.signature:
            msg = "signature must not be empty"
            raise SchemaError(msg, SchemaErrorKind.INVALID_VALUE, "signature")
        if self.certificate is not None:
            fields.as_bytes(self.certificate, "certificate")
        if self.info is not None:
            object.__setattr__(self, "info", fields.frozen(self.info))
        object.__setattr__(self, "extra", fields.frozen(self.extra))

    @classmethod
    def from_bencode(
        cls,
        value: Any,
        policy: UnknownFieldPolicy,
        where: str,
    ) -> Signature:
        """Build a signature entry from its decoded dictionary."""
        data = fields.expect_dict(value, where)
        signature = fields.as_bytes(
            fields.require(data, b"signature", where), f"{where}.signature"
        )
        certificate = None
        if b"certificate" in data:
            certificate = fields.as_bytes(data[b"certificate"], f"{where}.certificate")
        info = None
        if b"info" in data:
            info = fields.expect_dict(data[b"info"], f"{where}.info")
        extra = fields.unknown_fields(data, cls.KNOWN_KEYS, policy, where)
        try:
            return cls(
                signature=signature,
                certificate=certificate,
                info=info,
                extra=extra,
            )
        except SchemaError as e:
            raise SchemaError(e.message, e.kind, fields.join(where, e.field)) from e

    def to_dict(self) -> dict[bytes, Any]:
        """Return the Bencode dictionary of this entry."""
        result: dict[bytes, Any] = dict(self.extra)
        result[b"signature"] = self.signature
        if self.certificate is not None:
            result[b"certificate"] = self.certificate
        if self.info is not None:
            result[b"info"] = dict(self.info)
        return result


def parse_signatures(
    value: Any,
    policy: UnknownFieldPolicy,
    where: str = "signatures",
) -> dict[str, Signature]:
    """Parse the ``signatures`` dictionary into signer name -> :class:`Signature`."""
    data = fields.expect_dict(value, where)
    signatures: dict[str, Signature] = {}
    for key, entry in data.items():
        name = fields.as_text(key, where)
        signatures[name] = Signature.from_bencode(entry, policy, fields.join(where, name))
    logger.debug("Parsed %d signatures: %s", len(signatures), list(signatures))
    return signatures
