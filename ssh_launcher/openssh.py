"""
OpenSSH 연동 모듈 - 로컬 ~/.ssh 디렉토리의 공개키와 설정 파일 읽기

구현 방식:
- paramiko의 PublicBlob으로 *.pub 파일 파싱 (키 종류, 지문 확인)
- paramiko의 SSHConfig로 ~/.ssh/config 의 Host 항목을 프로필로 변환

키 복사(ssh-copy-id) 전에 사용할 공개키를 고르거나,
이미 ssh 설정에 등록된 서버를 한 번에 가져올 때 사용
"""

import base64
import getpass
import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from paramiko import PublicBlob, SSHConfig
from paramiko.ssh_exception import ConfigParseError

from .profile import Profile


DEFAULT_SSH_DIR = Path.home() / ".ssh"


@dataclass
class PublicKey:
    """로컬 공개키 정보"""
    path: Path
    key_type: str                       # 예: ssh-ed25519, ssh-rsa
    fingerprint: str                    # OpenSSH 형식 (SHA256:...)
    comment: str = ""

    def __str__(self) -> str:
        return f"{self.path.name} ({self.key_type} {self.fingerprint})"


def fingerprint(key_blob: bytes) -> str:
    """공개키 바이트에서 OpenSSH SHA256 지문 계산"""
    digest = hashlib.sha256(key_blob).digest()
    return "SHA256:" + base64.b64encode(digest).decode().rstrip("=")


def find_public_keys(ssh_dir: Path = None) -> list[PublicKey]:
    """
    공개키 파일 검색

    Args:
        ssh_dir: 검색할 디렉토리 (기본: ~/.ssh)

    Returns:
        파싱에 성공한 공개키 목록 (파일명 순)
    """
    ssh_dir = Path(ssh_dir) if ssh_dir else DEFAULT_SSH_DIR
    if not ssh_dir.is_dir():
        return []

    keys = []
    for path in sorted(ssh_dir.glob("*.pub")):
        try:
            blob = PublicBlob.from_file(str(path))
        except (OSError, ValueError):
            # 읽을 수 없거나 형식이 다른 파일은 무시
            continue

        keys.append(PublicKey(
            path=path,
            key_type=blob.key_type,
            fingerprint=fingerprint(blob.key_blob),
            comment=blob.comment or "",
        ))
    return keys


def _local_user() -> Optional[str]:
    """로컬 로그인 이름 (passwd 항목이 없는 컨테이너 등에서는 None)"""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return None


def _is_pattern(host: str) -> bool:
    return host.startswith('!') or any(ch in host for ch in '*?')


def load_config_profiles(config_path: Path = None, default_user: Optional[str] = None) -> list[Profile]:
    """
    ssh 설정 파일의 Host 항목을 프로필로 변환

    Args:
        config_path: ssh 설정 파일 (기본: ~/.ssh/config)
        default_user: User 항목이 없을 때 사용할 사용자 (기본: 로컬 로그인 이름)

    Returns:
        와일드카드를 제외한 Host별 프로필 목록
        (사용자를 알 수 없거나 '-'로 시작하는 값이 있는 Host는 제외)
    """
    config_path = Path(config_path) if config_path else DEFAULT_SSH_DIR / "config"
    if not config_path.is_file():
        return []

    try:
        config = SSHConfig.from_path(str(config_path))
    except ConfigParseError as e:
        raise ValueError(f"ssh 설정 파일을 읽을 수 없습니다 ({config_path}): {e}") from e

    profiles = []
    for host in sorted(config.get_hostnames()):
        if _is_pattern(host):
            continue

        options = config.lookup(host)
        user = options.get('user') or default_user or _local_user()
        if not user:
            continue

        try:
            profile = Profile(
                name=host,
                address=options.get('hostname', host),
                user=user,
            )
        except ValueError:
            # ssh 옵션으로 해석될 수 있는 값은 가져오지 않음
            continue
        profiles.append(profile)
    return profiles
