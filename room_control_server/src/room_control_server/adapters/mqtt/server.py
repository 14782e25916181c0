import logging
import signal
import threading
from dataclasses import dataclass
from functools import partial

from room_control_core.application import TelemetryIngestor, run_control_cycle
from room_control_core.config.environments import Settings, get_settings

from room_control_server.adapters.db.uow import SqlAlchemyUoW
from room_control_server.adapters.mqtt.transport import MQTTTransport
from room_control_server.control_scheduler import ControlScheduler
from room_control_server.telemetry_loop import TelemetryConsumer

log = logging.getLogger(__name__)


@dataclass
class Runtime:
    transport: MQTTTransport
    consumer: TelemetryConsumer
    scheduler: ControlScheduler

    def start(self) -> None:
        if not self.transport.connect():
            log.warning("MQTT broker unavailable, retrying in the background")
        self.consumer.start()
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()
        self.consumer.stop()
        self.scheduler.join(timeout=30)
        self.consumer.join(timeout=5)
        self.transport.close()


def make_transport(settings: Settings) -> MQTTTransport:
    return MQTTTransport(
        host=settings.MQTT_BROKER,
        port=settings.MQTT_PORT,
        topic=settings.MQTT_TOPIC,
        client_id=settings.MQTT_CLIENT_ID,
        username=settings.MQTT_USERNAME,
        password=settings.MQTT_PASSWORD,
        qos=settings.MQTT_QOS,
        queue_max=settings.INGEST_QUEUE_MAX,
    )


def build_runtime(settings: Settings, uow_factory=SqlAlchemyUoW, transport=None) -> Runtime:
    transport = transport or make_transport(settings)
    ingestor = TelemetryIngestor(uow_factory, store_readings=settings.STORE_SENSOR_READINGS)
    cycle = partial(
        run_control_cycle,
        uow_factory,
        transport,
        window_s=settings.FRESHNESS_WINDOW_SEC,
        record_audit=settings.RECORD_DIFF_AUDIT,
    )
    return Runtime(
        transport=transport,
        consumer=TelemetryConsumer(transport.inbound, ingestor.handle),
        scheduler=ControlScheduler(cycle, interval_s=settings.CONTROL_INTERVAL_SEC),
    )


def main() -> None:
    settings = get_settings()

    log.info(f"Starting room control server in {settings.ENVIRONMENT.value} environment")
    log.info(f"Connecting to MQTT broker at {settings.MQTT_BROKER}:{settings.MQTT_PORT}")
    log.info(f"Using topic: {settings.MQTT_TOPIC}")
    log.info(f"Client ID: {settings.MQTT_CLIENT_ID}")

    runtime = build_runtime(settings)
    done = threading.Event()

    def _shutdown(signum, _frame):
        log.info("Received signal %s, shutting down", signum)
        done.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    runtime.start()
    done.wait()
    runtime.stop()
