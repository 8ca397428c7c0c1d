"""Engine Layer - 벤더 중립 검색 엔진

- SearchOrchestrator: MPN / Parametric / Cross-Reference 진입점
- CategoryResolver: 부품번호/경로 → 벤더 카테고리 코드
- FilterEncoder: 필터 맵 → 벤더 쿼리 문법
- CircuitBreaker, ResilientClassifier: AI 호출 보호

순환 import를 피하기 위해 여기서는 하위 모듈을 import하지 않습니다.
"""
