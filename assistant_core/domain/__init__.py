"""领域层模型与异常。

包含：
- models: ConversationTurn / IntentResult / ModelBackend / ResponseEnvelope 等统一模型。
- exceptions: 业务异常类型定义。
"""
