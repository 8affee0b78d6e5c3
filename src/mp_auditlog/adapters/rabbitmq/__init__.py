"""RabbitMQ adapter – RabbitMQPersister."""
from mp_auditlog.adapters.rabbitmq.persister import RabbitMQPersister

__all__ = ["RabbitMQPersister"]
