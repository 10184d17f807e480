from fastapi import Request

from coding_threads.platform.threads import NotificationBus, ThreadManager


def get_thread_manager(request: Request) -> ThreadManager:
    return request.app.state.thread_manager


def get_notification_bus(request: Request) -> NotificationBus:
    return request.app.state.thread_manager.bus
