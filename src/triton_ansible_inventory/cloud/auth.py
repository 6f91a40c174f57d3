"""HTTP Signature authentication for CloudAPI requests using SSH keys."""

from __future__ import annotations

import base64
import hashlib
import logging
from email.utils import formatdate
from pathlib import Path
from typing import Generator, Iterable

import httpx
import paramiko

from .errors import SigningKeyError

logger = logging.getLogger(__name__)

SIGNING_ALGORITHM = "rsa-sha256"
SSH_SIGNING_ALGORITHM = "rsa-sha2-256"
DEFAULT_SSH_DIR = Path("~/.ssh")


def md5_fingerprint(blob: bytes) -> str:
    digest = hashlib.md5(blob).hexdigest()
    return ":".join(digest[i : i + 2] for i in range(0, len(digest), 2))


def sha256_fingerprint(blob: bytes) -> str:
    digest = base64.b64encode(hashlib.sha256(blob).digest()).decode("ascii")
    return "SHA256:" + digest.rstrip("=")


def fingerprint_matches(key_id: str, blob: bytes) -> bool:
    """Compare a Triton key id (MD5 hex or ``SHA256:``) with a public key blob."""
    key_id = key_id.strip()
    if key_id.upper().startswith("SHA256:"):
        return key_id[len("SHA256:") :] == sha256_fingerprint(blob)[len("SHA256:") :]
    if key_id.upper().startswith("MD5:"):
        key_id = key_id[len("MD5:") :]
    return key_id.lower() == md5_fingerprint(blob)


def _public_blob(pub_path: Path) -> bytes | None:
    try:
        fields = pub_path.read_text(encoding="utf-8").split()
    except OSError:
        return None
    if len(fields) < 2:
        return None
    try:
        return base64.b64decode(fields[1])
    except ValueError:
        return None


def _agent_keys() -> Iterable[paramiko.AgentKey]:
    try:
        agent = paramiko.Agent()
    except paramiko.SSHException as exc:
        logger.debug("ssh-agent unavailable: %s", exc)
        return ()
    return agent.get_keys()


def find_signing_key(
    key_id: str,
    *,
    key_path: Path | None = None,
    passphrase: str | None = None,
    ssh_dir: Path | None = None,
    use_agent: bool = True,
) -> paramiko.PKey:
    """Locate the RSA key whose fingerprint matches ``key_id``.

    An explicit ``key_path`` wins. Otherwise keys held by ssh-agent are
    searched, then every ``*.pub`` file under ``ssh_dir`` whose private
    counterpart sits next to it.
    """
    if key_path is not None:
        try:
            key = paramiko.RSAKey.from_private_key_file(str(key_path), password=passphrase)
        except (OSError, paramiko.SSHException) as exc:
            raise SigningKeyError(f"Unable to load signing key {key_path}: {exc}") from exc
        if not fingerprint_matches(key_id, key.asbytes()):
            logger.warning("Key %s does not match key id %s, using it anyway", key_path, key_id)
        return key

    if use_agent:
        for agent_key in _agent_keys():
            if agent_key.get_name() == "ssh-rsa" and fingerprint_matches(key_id, agent_key.asbytes()):
                logger.debug("Using ssh-agent key %s", key_id)
                return agent_key

    ssh_dir = (ssh_dir or DEFAULT_SSH_DIR).expanduser()
    for pub_path in sorted(ssh_dir.glob("*.pub")):
        blob = _public_blob(pub_path)
        if blob is None or not fingerprint_matches(key_id, blob):
            continue
        private_path = pub_path.with_suffix("")
        try:
            key = paramiko.RSAKey.from_private_key_file(str(private_path), password=passphrase)
        except (OSError, paramiko.SSHException) as exc:
            raise SigningKeyError(f"Unable to load signing key {private_path}: {exc}") from exc
        logger.debug("Using key file %s", private_path)
        return key

    raise SigningKeyError(f"No RSA key matching {key_id} in ssh-agent or {ssh_dir}")


def sign_string(key: paramiko.PKey, data: str) -> str:
    """Return the base64 RSA-SHA256 signature of ``data``."""
    blob = key.sign_ssh_data(data.encode("utf-8"), SSH_SIGNING_ALGORITHM)
    if isinstance(blob, paramiko.Message):
        blob = blob.asbytes()
    message = paramiko.Message(blob)
    message.get_text()  # algorithm name
    return base64.b64encode(message.get_binary()).decode("ascii")


def key_path_id(account: str, key: paramiko.PKey, user: str | None = None) -> str:
    fingerprint = md5_fingerprint(key.asbytes())
    if user:
        return f"/{account}/users/{user}/keys/{fingerprint}"
    return f"/{account}/keys/{fingerprint}"


class HttpSignatureAuth(httpx.Auth):
    """Sign each request's ``Date`` header the way CloudAPI expects."""

    def __init__(self, key: paramiko.PKey, account: str, user: str | None = None) -> None:
        self.key = key
        self.key_id = key_path_id(account, key, user)

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        date = formatdate(usegmt=True)
        signature = sign_string(self.key, f"date: {date}")
        request.headers["Date"] = date
        request.headers["Authorization"] = (
            f'Signature keyId="{self.key_id}",algorithm="{SIGNING_ALGORITHM}",'
            f'headers="date",signature="{signature}"'
        )
        yield request
