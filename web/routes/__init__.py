"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- accounts: 계정과목표
- fiscal_years: 회계연도 / 회계기간
- journal_entries: 분개 작성, 전기, 역분개
- reports: 시산표, 잔액, 재무제표
- recurring_journals: 반복 분개 템플릿, 도래 회차 실행
- budgets: 예산, 예산 대비 실적
"""
