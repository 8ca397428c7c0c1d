"""벤더 응답(JSON/HTML 그리드) → CanonicalRow 목록 파서 모음.

모든 파서는 예외를 던지지 않고, 구조가 맞지 않으면 빈 리스트를 반환합니다.
"""
