"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- transactions: 거래 생성/조회/수정/삭제
- ledger: 원장/잔액 조회, 재구축, 정합성 점검
- backup: 거래 로그 내보내기/가져오기
"""
