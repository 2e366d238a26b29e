"""
프로필 관리 모듈 - SSH 접속 프로필(이름, 주소, 사용자)을 JSON 파일로 저장/관리

데이터 구조:
- 사람이 직접 편집할 수 있는 JSON 리스트
- 레코드당 세 필드만 저장 (암호화/비밀번호 없음)
- 변경이 있을 때마다 전체 목록을 다시 기록

저장 파일 구조 예시:
[
    {
        "name": "웹서버1",
        "ip": "192.168.1.10",
        "user": "admin"
    }
]
"""

import json
from pathlib import Path
from dataclasses import dataclass, asdict
from typing import Optional


@dataclass
class Profile:
    """SSH 접속 프로필을 담는 데이터 클래스"""

    name: str                           # 프로필 별칭 (표시용)
    address: str                        # IP 주소 또는 호스트명
    user: str                           # SSH 사용자 이름

    def __post_init__(self):
        """'-'로 시작하는 주소/사용자는 ssh 옵션으로 해석되므로 거부"""
        for field_name in ('address', 'user'):
            if getattr(self, field_name).startswith('-'):
                raise ValueError(
                    f"{field_name} 값은 '-'로 시작할 수 없습니다: {getattr(self, field_name)}"
                )

    @property
    def label(self) -> str:
        """선택 목록에 표시되는 문자열 (중복 불가)"""
        return f"{self.name} (IP: {self.address}, User: {self.user})"

    @property
    def target(self) -> str:
        """ssh 접속 대상 (user@address)"""
        return f"{self.user}@{self.address}"

    def to_dict(self) -> dict:
        """
        파일 저장용 딕셔너리로 변환

        주소는 기존 설정 파일과 호환되도록 'ip' 키로 저장
        """
        data = asdict(self)
        data['ip'] = data.pop('address')
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Profile':
        """딕셔너리에서 Profile 객체 생성"""
        if not isinstance(data, dict):
            raise ValueError(f"잘못된 프로필 레코드: {data!r}")

        missing = [key for key in ('name', 'ip', 'user') if key not in data]
        if missing:
            raise ValueError(f"프로필 필드 누락: {', '.join(missing)}")

        return cls(
            name=str(data['name']),
            address=str(data['ip']),
            user=str(data['user']),
        )

    def __str__(self) -> str:
        return self.label


class DuplicateProfileError(ValueError):
    """같은 표시 문자열을 가진 프로필이 이미 존재"""


def get_app_directory() -> Path:
    """
    실행 파일과 같은 디렉토리 반환 (휴대용)

    PyInstaller로 빌드된 경우: 실행 파일 위치
    일반 Python 실행: 프로젝트 위치
    """
    import sys
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent.parent


class ProfileStore:
    """프로필 목록을 파일과 동기화하여 관리하는 클래스"""

    # 설정 파일이 없을 때 생성되는 템플릿
    DEFAULT_PROFILES = [
        {'name': 'Template Server 1', 'ip': '192.168.1.100', 'user': 'template_user'},
    ]

    def __init__(self, profiles_file: Path = None):
        """
        Args:
            profiles_file: 프로필 파일 경로 (기본: 앱 디렉토리의 .ssh_launcher/profiles.json)
        """
        if profiles_file is None:
            profiles_file = get_app_directory() / ".ssh_launcher" / "profiles.json"

        self.profiles_file = Path(profiles_file)
        self._profiles: list[Profile] = []
        self.skipped_duplicates = 0         # 마지막 load()에서 건너뛴 중복 레코드 수

    def is_first_run(self) -> bool:
        """처음 실행 여부"""
        return not self.profiles_file.exists()

    def load(self) -> bool:
        """
        프로필 목록 로드

        파일이 없으면 템플릿으로 새로 생성

        Returns:
            템플릿 파일을 새로 만들었으면 True

        Raises:
            ValueError: 파일 형식이 잘못된 경우
        """
        if self.is_first_run():
            self._profiles = [Profile.from_dict(data) for data in self.DEFAULT_PROFILES]
            self.save()
            return True

        try:
            with open(self.profiles_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"프로필 파일을 읽을 수 없습니다 ({self.profiles_file}): {e}") from e

        if not isinstance(data, list):
            raise ValueError(f"프로필 파일은 JSON 리스트여야 합니다: {self.profiles_file}")

        # 직접 편집된 파일의 중복 레코드는 첫 번째만 유지
        self._profiles = []
        self.skipped_duplicates = 0
        labels = set()
        for item in data:
            profile = Profile.from_dict(item)
            if profile.label in labels:
                self.skipped_duplicates += 1
                continue
            labels.add(profile.label)
            self._profiles.append(profile)
        return False

    def save(self) -> None:
        """프로필 목록 전체를 파일에 기록"""
        self.profiles_file.parent.mkdir(parents=True, exist_ok=True)

        with open(self.profiles_file, 'w', encoding='utf-8') as f:
            json.dump(
                [profile.to_dict() for profile in self._profiles],
                f, indent=2, ensure_ascii=False
            )

        # 파일 권한 제한 (소유자만 읽기/쓰기)
        self.profiles_file.chmod(0o600)

    def _check_unique(self, label: str, ignore_index: int = None) -> None:
        for i, profile in enumerate(self._profiles):
            if i != ignore_index and profile.label == label:
                raise DuplicateProfileError(f"이미 등록된 프로필입니다: {label}")

    def _save_or_restore(self, snapshot: list[Profile]) -> None:
        """저장에 실패하면 메모리 목록을 이전 상태로 되돌림"""
        try:
            self.save()
        except OSError:
            self._profiles = snapshot
            raise

    def add(self, profile: Profile) -> None:
        """프로필 추가"""
        self._check_unique(profile.label)
        snapshot = list(self._profiles)
        self._profiles.append(profile)
        self._save_or_restore(snapshot)

    def update(self, index: int, **kwargs) -> Profile:
        """
        프로필 수정

        Args:
            index: 수정할 프로필 위치
            **kwargs: 수정할 필드들 (name, address, user)

        Returns:
            수정된 프로필
        """
        unknown = set(kwargs) - {'name', 'address', 'user'}
        if unknown:
            raise ValueError(f"수정할 수 없는 필드: {', '.join(sorted(unknown))}")

        profile = self.get(index)
        candidate = Profile(
            name=kwargs.get('name', profile.name),
            address=kwargs.get('address', profile.address),
            user=kwargs.get('user', profile.user),
        )
        self._check_unique(candidate.label, ignore_index=index)

        previous = {key: getattr(profile, key) for key in kwargs}
        for key, value in kwargs.items():
            setattr(profile, key, value)

        try:
            self.save()
        except OSError:
            for key, value in previous.items():
                setattr(profile, key, value)
            raise
        return profile

    def remove(self, index: int) -> Profile:
        """
        프로필 삭제

        Returns:
            삭제된 프로필
        """
        profile = self.get(index)
        snapshot = list(self._profiles)
        del self._profiles[index]
        self._save_or_restore(snapshot)
        return profile

    def get(self, index: int) -> Profile:
        """위치로 프로필 조회"""
        if not 0 <= index < len(self._profiles):
            raise IndexError(f"프로필 번호가 범위를 벗어났습니다: {index + 1}")
        return self._profiles[index]

    def find(self, label: str) -> Optional[Profile]:
        """표시 문자열로 프로필 조회"""
        for profile in self._profiles:
            if profile.label == label:
                return profile
        return None

    def list_profiles(self) -> list[Profile]:
        """프로필 목록 조회"""
        return list(self._profiles)

    def import_profiles(self, profiles: list[Profile]) -> list[Profile]:
        """
        여러 프로필을 한 번에 추가 (이미 있는 것은 건너뜀)

        Returns:
            실제로 추가된 프로필 목록
        """
        snapshot = list(self._profiles)
        labels = {profile.label for profile in self._profiles}
        added = []
        for profile in profiles:
            if profile.label in labels:
                continue
            labels.add(profile.label)
            self._profiles.append(profile)
            added.append(profile)

        if added:
            self._save_or_restore(snapshot)
        return added

    @property
    def profile_count(self) -> int:
        """등록된 프로필 수"""
        return len(self._profiles)
