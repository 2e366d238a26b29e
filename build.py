#!/usr/bin/env python3
"""
PyInstaller 빌드 스크립트 - 설치 없이 실행할 수 있는 배포본 생성

Python이 없는 서버/PC에서도 사용할 수 있도록 모든 의존성을 포함한
실행 파일 디렉토리를 생성합니다.

사용법:
    python build.py

결과물:
    dist/ssh_launcher/ssh_launcher (Linux, macOS)
    dist/ssh_launcher/ssh_launcher.exe (Windows)

프로필 파일은 실행 파일 옆의 .ssh_launcher/profiles.json 에 저장됩니다.
"""

import os
import sys
import shutil
import subprocess
from pathlib import Path


APP_NAME = 'ssh_launcher'

# 동적으로 로드되어 PyInstaller가 찾지 못하는 모듈
HIDDEN_IMPORTS = [
    # paramiko: 공개키 파싱, ssh 설정 파일 파싱
    'paramiko',
    'paramiko.config',
    'paramiko.pkey',

    # paramiko 의존성 (암호화 백엔드)
    'cryptography',
    'cryptography.hazmat.backends',
    'cryptography.hazmat.backends.openssl',
    'bcrypt',
    'nacl',
    'nacl.bindings',

    # rich TUI 라이브러리
    'rich',
    'rich.console',
    'rich.markup',
    'rich.table',
    'rich.panel',
    'rich.prompt',
    'rich.text',
    'rich.box',
]


def check_pyinstaller():
    """PyInstaller 설치 확인"""
    try:
        import PyInstaller
        print(f"PyInstaller 버전: {PyInstaller.__version__}")
        return True
    except ImportError:
        print("PyInstaller가 설치되어 있지 않습니다.")
        print("설치: pip install pyinstaller")
        return False


def build_command(entry_script: str = 'run.py') -> list[str]:
    """PyInstaller 실행 명령 생성"""
    cmd = [
        sys.executable, '-m', 'PyInstaller',
        '--onedir',                     # 폴더 형태 (더 안정적)
        '--name', APP_NAME,             # 출력 이름
        '--clean',                      # 캐시 정리 후 빌드
        '--noconfirm',                  # 확인 없이 덮어쓰기
    ]

    for module in HIDDEN_IMPORTS:
        cmd.extend(['--hidden-import', module])

    # 진입점
    cmd.append(entry_script)
    return cmd


def build():
    """빌드 실행"""
    if not check_pyinstaller():
        sys.exit(1)

    # 현재 디렉토리 확인
    script_dir = Path(__file__).parent.absolute()
    os.chdir(script_dir)

    print(f"빌드 디렉토리: {script_dir}")

    # 이전 빌드 결과물 정리
    for folder in ['build', 'dist']:
        if Path(folder).exists():
            print(f"이전 {folder} 폴더 삭제...")
            shutil.rmtree(folder)

    spec_file = Path(f'{APP_NAME}.spec')
    if spec_file.exists():
        spec_file.unlink()

    cmd = build_command()

    print("\n빌드 시작...")
    print(f"명령: {' '.join(cmd)}\n")

    result = subprocess.run(cmd)

    if result.returncode != 0:
        print("\n빌드 실패!")
        sys.exit(1)

    print("\n" + "=" * 50)
    print("빌드 성공!")
    print("=" * 50)

    # --onedir 결과물 위치
    executable = APP_NAME + ('.exe' if sys.platform == 'win32' else '')
    output = script_dir / 'dist' / APP_NAME / executable

    if output.exists():
        print(f"\n실행 파일: {output}")
        print("\n사용법:")
        if sys.platform == 'win32':
            print(f"    dist\\{APP_NAME}\\{executable}")
        else:
            print(f"    ./dist/{APP_NAME}/{executable}")


if __name__ == '__main__':
    build()
