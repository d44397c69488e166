"""
AWS Signature Version 4 query-string signer.

Produces presigned URLs accepted by S3-compatible stores (Cloudflare R2)
without sending the secret key anywhere. Pure computation: no network
calls and no state.

Algorithm:
1. Timestamp (YYYYMMDDTHHMMSSZ) and date prefix (YYYYMMDD)
2. Credential scope: {date}/{region}/{service}/aws4_request
3. Canonical request: verb, encoded path, canonical query string,
   canonical headers, signed headers, UNSIGNED-PAYLOAD
4. SHA-256 of the canonical request
5. String to sign: algorithm, timestamp, scope, hashed request
6. Signing key: HMAC chain seeded with "AWS4" + secret
7. Signature: HMAC of the string to sign with the signing key
"""
import enum
import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from urllib.parse import quote

from app.storage.credentials import R2Credential
from app.storage.errors import ValidationError

ALGORITHM = "AWS4-HMAC-SHA256"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
SCOPE_TERMINATOR = "aws4_request"
DEFAULT_REGION = "auto"
DEFAULT_SERVICE = "s3"

# Presigned URLs are valid for one hour, for read and write grants alike
DEFAULT_EXPIRES = 3600
# Upper bound enforced by S3 for SigV4 presigned URLs (7 days)
MAX_EXPIRES = 604800

MAX_KEY_BYTES = 1024


class Operation(str, enum.Enum):
    """HTTP verb a presigned URL authorizes."""
    PUT = "PUT"
    DELETE = "DELETE"
    GET = "GET"


@dataclass(frozen=True)
class SigningRequest:
    """
    A single grant to sign.

    content_type is only bound into the signature when set; PUT grants from
    the signing service always set it.
    """
    key: str
    content_type: Optional[str] = None
    operation: Operation = Operation.PUT
    expires: int = DEFAULT_EXPIRES


@dataclass(frozen=True)
class SignatureResult:
    """Output of sign(): the signature plus everything needed to build the URL."""
    signature: str
    canonical_query_string: str
    signed_headers: str
    amz_date: str
    credential_scope: str


@dataclass(frozen=True)
class PresignedUrl:
    url: str
    expires_at: datetime


def validate_key(key: str) -> str:
    """
    Validate an object key.

    Raises:
        ValidationError: if the key is empty or malformed
    """
    if not isinstance(key, str) or not key.strip():
        raise ValidationError("Missing required parameter: key")
    if key.startswith("/"):
        raise ValidationError("Object key must not start with '/'")
    if len(key.encode("utf-8")) > MAX_KEY_BYTES:
        raise ValidationError(f"Object key exceeds {MAX_KEY_BYTES} bytes")
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in key):
        raise ValidationError("Object key contains control characters")
    for segment in key.split("/"):
        if segment in ("", ".", ".."):
            raise ValidationError(f"Object key has an invalid path segment: {key!r}")
    return key


def validate_expires(expires) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(expires, bool) or not isinstance(expires, int):
        raise ValidationError("Expiry must be an integer number of seconds")
    if expires <= 0 or expires > MAX_EXPIRES:
        raise ValidationError(f"Expiry must be between 1 and {MAX_EXPIRES} seconds")
    return expires


def uri_encode_path(key: str) -> str:
    """Percent-encode an object key for the request path. Slashes are kept."""
    return "/" + quote(key, safe="/~")


def uri_encode_query(value: str) -> str:
    """Percent-encode a query component. Slashes are encoded."""
    return quote(value, safe="~")


def format_amz_date(timestamp: datetime) -> Tuple[str, str]:
    """Return (YYYYMMDDTHHMMSSZ, YYYYMMDD) in UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    timestamp = timestamp.astimezone(timezone.utc)
    amz_date = timestamp.strftime("%Y%m%dT%H%M%SZ")
    return amz_date, amz_date[:8]


def _hmac(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(
    secret_access_key: str,
    date_stamp: str,
    region: str = DEFAULT_REGION,
    service: str = DEFAULT_SERVICE,
) -> bytes:
    k_date = _hmac(("AWS4" + secret_access_key).encode("utf-8"), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, SCOPE_TERMINATOR)


def _canonical_headers(credential: R2Credential, request: SigningRequest) -> Tuple[str, str]:
    headers = {"host": credential.host}
    if request.content_type:
        headers["content-type"] = request.content_type.strip()
    names = sorted(headers)
    canonical = "".join(f"{name}:{headers[name]}\n" for name in names)
    return canonical, ";".join(names)


def sign(
    credential: R2Credential,
    request: SigningRequest,
    timestamp: datetime,
    region: str = DEFAULT_REGION,
    service: str = DEFAULT_SERVICE,
) -> SignatureResult:
    """
    Sign a request with SigV4 query-string authentication.

    Deterministic: identical credential, request and timestamp always give
    the same signature.

    Args:
        credential: Storage credential
        request: Grant to sign (key, content type, verb, expiry)
        timestamp: Signing time (naive values are treated as UTC)
        region: Region token of the credential scope
        service: Service token of the credential scope

    Returns:
        SignatureResult with the hex signature and canonical query string

    Raises:
        ValidationError: on malformed key or expiry
    """
    validate_key(request.key)
    expires = validate_expires(request.expires)
    operation = Operation(request.operation)

    amz_date, date_stamp = format_amz_date(timestamp)
    credential_scope = f"{date_stamp}/{region}/{service}/{SCOPE_TERMINATOR}"
    canonical_headers, signed_headers = _canonical_headers(credential, request)

    query = {
        "X-Amz-Algorithm": ALGORITHM,
        "X-Amz-Credential": f"{credential.access_key_id}/{credential_scope}",
        "X-Amz-Date": amz_date,
        "X-Amz-Expires": str(expires),
        "X-Amz-SignedHeaders": signed_headers,
    }
    canonical_query_string = "&".join(
        f"{uri_encode_query(name)}={uri_encode_query(query[name])}"
        for name in sorted(query)
    )

    canonical_request = "\n".join([
        operation.value,
        uri_encode_path(request.key),
        canonical_query_string,
        canonical_headers,
        signed_headers,
        UNSIGNED_PAYLOAD,
    ])
    hashed_request = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()

    string_to_sign = "\n".join([ALGORITHM, amz_date, credential_scope, hashed_request])
    signing_key = derive_signing_key(credential.secret_access_key, date_stamp, region, service)
    signature = hmac.new(
        signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
    ).hexdigest()

    return SignatureResult(
        signature=signature,
        canonical_query_string=canonical_query_string,
        signed_headers=signed_headers,
        amz_date=amz_date,
        credential_scope=credential_scope,
    )


def presign_url(
    credential: R2Credential,
    request: SigningRequest,
    timestamp: Optional[datetime] = None,
    region: str = DEFAULT_REGION,
    service: str = DEFAULT_SERVICE,
) -> PresignedUrl:
    """
    Build a full presigned URL for the request.

    Returns:
        PresignedUrl with the URL and its expiry time (UTC)
    """
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)
    elif timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    result = sign(credential, request, timestamp, region=region, service=service)
    url = (
        f"{credential.scheme}://{credential.host}{uri_encode_path(request.key)}"
        f"?{result.canonical_query_string}&X-Amz-Signature={result.signature}"
    )
    # Expiry counts from the signed (second precision) timestamp
    signed_at = timestamp.astimezone(timezone.utc).replace(microsecond=0)
    return PresignedUrl(url=url, expires_at=signed_at + timedelta(seconds=request.expires))
