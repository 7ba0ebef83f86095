from student_assistant.conversation.manager import ConversationManager

__all__ = ["ConversationManager"]
