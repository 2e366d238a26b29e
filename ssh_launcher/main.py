#!/usr/bin/env python3
"""
SSH Launcher - 메인 진입점

실행 방법:
    ssh-launcher
    또는
    python -m ssh_launcher.main
"""

import sys
import argparse
from pathlib import Path

from . import __version__
from .ui import main as ui_main, console


def parse_args(argv: list[str] = None):
    """명령줄 인수 파싱"""
    parser = argparse.ArgumentParser(
        description="SSH Launcher - 원격 서버 접속 프로필 관리 및 SSH 실행 도구",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
사용 예시:
  ssh-launcher                            # 메뉴 실행
  ssh-launcher --config ~/servers.json    # 다른 프로필 파일 사용
  ssh-launcher --no-tmux                  # tmux 없이 직접 ssh 접속

기능:
  - 접속 프로필(이름, 주소, 사용자) 저장/수정/삭제
  - tmux 새 창에서 SSH 접속 (tmux 실행 실패 시 직접 연결)
  - ssh-copy-id로 비밀번호 없는 로그인 설정
  - ~/.ssh/config 의 Host 항목 가져오기
"""
    )

    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"SSH Launcher v{__version__}"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="프로필 파일 경로 (기본: 실행 파일 위치의 .ssh_launcher/profiles.json)"
    )
    parser.add_argument(
        "--no-tmux",
        action="store_true",
        help="tmux를 사용하지 않고 항상 직접 ssh로 접속"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="실행하는 외부 명령 출력"
    )

    return parser.parse_args(argv)


def main(argv: list[str] = None):
    """메인 함수"""
    args = parse_args(argv)

    # 터미널 환경 체크
    if not sys.stdin.isatty():
        console.print("[red]오류: 터미널 환경에서 실행해주세요.[/red]")
        sys.exit(1)

    ui_main(
        profiles_file=args.config.expanduser() if args.config else None,
        use_tmux=not args.no_tmux,
        verbose=args.verbose
    )


if __name__ == "__main__":
    main()
