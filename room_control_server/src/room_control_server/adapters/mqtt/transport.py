import logging
import queue
import threading
from typing import Optional, Tuple

import paho.mqtt.client as paho
from room_control_core.domain.errors import TransportError
from room_control_core.domain.ports import CommandPublisher

logger = logging.getLogger(__name__)

InboundMessage = Tuple[str, bytes]


def drop_oldest(q: "queue.Queue[InboundMessage]", item: InboundMessage) -> None:
    while True:
        try:
            q.put_nowait(item)
            return
        except queue.Full:
            try:
                dropped = q.get_nowait()
                logger.warning("Inbound queue full, dropping message on %s", dropped[0])
            except queue.Empty:
                pass


class MQTTTransport(CommandPublisher):
    """
    Owns the paho client: subscribes to the room topics and publishes commands.

    Inbound messages are only enqueued as ``(topic, payload)`` pairs; parsing
    happens in the consumer loop that drains ``inbound``. Reconnection is left
    to paho's own policy (``reconnect_delay_set``).
    """

    def __init__(
        self,
        *,
        host: str,
        port: int = 1883,
        topic: str = "room/+/+/+",
        client_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
        keepalive: int = 60,
        reconnect_delay: int = 1,
        reconnect_delay_max: int = 60,
        inbound: Optional["queue.Queue[InboundMessage]"] = None,
        queue_max: int = 5000,
    ):
        self.host = host
        self.port = port
        self.topic = topic
        self.client_id = client_id
        self.qos = qos
        self.keepalive = keepalive
        self.inbound: "queue.Queue[InboundMessage]" = inbound or queue.Queue(maxsize=queue_max)

        self._lock = threading.Lock()
        self._connected = False
        self._connected_event = threading.Event()
        self._disconnected_rc = None

        self._client = paho.Client(
            paho.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            clean_session=True,
            protocol=paho.MQTTv311,
        )
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message
        self._client.reconnect_delay_set(min_delay=reconnect_delay, max_delay=reconnect_delay_max)

        if username and password:
            self._client.username_pw_set(username, password)

        logger.info(
            "Initializing MQTT transport: host=%s, port=%s, topic=%s, client_id=%s",
            host,
            port,
            topic,
            client_id,
        )

    def connect(self) -> bool:
        """
        Connect to the broker and start the network loop thread.

        A broker that is down is not fatal: the loop thread keeps retrying
        with paho's reconnect backoff and ``_on_connect`` subscribes once it
        succeeds.
        """
        ok = False
        try:
            result = self._client.connect(self.host, self.port, self.keepalive)
            ok = result == paho.MQTT_ERR_SUCCESS
            if not ok:
                logger.error("Failed to connect to MQTT broker: %s", result)
        except OSError as e:
            logger.error("Exception during MQTT connection: %s", e)
            self._client.connect_async(self.host, self.port, self.keepalive)

        self._client.loop_start()
        if ok:
            logger.info("Connected to MQTT broker %s:%s", self.host, self.port)
        return ok

    def _on_connect(self, client, _userdata, _flags, reason_code, _properties=None) -> None:
        if reason_code.is_failure:
            self._connected = False
            logger.error("MQTT connect failed, reason: %s", reason_code)
            return
        self._connected = True
        self._connected_event.set()
        # subscribe on every (re)connect, clean sessions drop subscriptions
        client.subscribe(self.topic, qos=self.qos)
        logger.info("Subscribed to %s", self.topic)

    def _on_disconnect(self, _client, _userdata, _flags, reason_code, _properties=None) -> None:
        self._connected = False
        self._connected_event.clear()
        self._disconnected_rc = reason_code
        logger.warning("Disconnected from MQTT broker, reason: %s", reason_code)

    def _on_message(self, _client, _userdata, msg) -> None:
        drop_oldest(self.inbound, (msg.topic, msg.payload))

    def publish(self, topic: str, payload: str) -> None:
        """Fire-and-forget publish; raises TransportError if the client refuses it."""
        if not self._connected:
            raise TransportError("not connected to MQTT broker")

        with self._lock:
            info = self._client.publish(topic, payload, qos=self.qos, retain=False)
        if info.rc != paho.MQTT_ERR_SUCCESS:
            raise TransportError(f"publish to {topic} failed, rc={info.rc}")
        logger.debug("Message published to %s with ID: %s", topic, info.mid)

    def is_connected(self) -> bool:
        return self._connected

    def wait_until_connected(self, timeout: float) -> bool:
        return self._connected_event.wait(timeout)

    def get_disconnect_reason(self):
        return self._disconnected_rc

    def close(self) -> None:
        logger.info("Closing MQTT connection")
        self._client.loop_stop()
        self._client.disconnect()
        self._connected = False
