"""
DUW 큐 모니터 - 카드 수령 창구 대기표 감시
"""
