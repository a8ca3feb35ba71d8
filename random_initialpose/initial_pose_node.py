#!/usr/bin/env python3
import rclpy
from rclpy.node import Node
from rclpy.executors import ExternalShutdownException
from rclpy.qos import QoSProfile, QoSReliabilityPolicy, QoSHistoryPolicy
from geometry_msgs.msg import PoseStamped, PoseWithCovarianceStamped
from sensor_msgs.msg import Joy
from std_msgs.msg import String
from tier4_debug_msgs.msg import Float32Stamped
import numpy as np

from random_initialpose.reinitializer import PoseEstimate, PoseReinitializer, check_timer_period


def pose_estimate_from_msg(msg):
    """PoseStamped -> PoseEstimate"""
    p = msg.pose.position
    q = msg.pose.orientation
    return PoseEstimate(
        x=p.x, y=p.y, z=p.z,
        orientation=(q.x, q.y, q.z, q.w),
        stamp=(msg.header.stamp.sec, msg.header.stamp.nanosec),
        frame_id=msg.header.frame_id,
    )


def initialpose_msg(pose, stamp):
    """RandomizedPose -> PoseWithCovarianceStamped"""
    msg = PoseWithCovarianceStamped()
    msg.header.stamp = stamp
    msg.header.frame_id = pose.frame_id
    msg.pose.pose.position.x = pose.x
    msg.pose.pose.position.y = pose.y
    msg.pose.pose.position.z = pose.z
    qx, qy, qz, qw = pose.orientation
    msg.pose.pose.orientation.x = qx
    msg.pose.pose.orientation.y = qy
    msg.pose.pose.orientation.z = qz
    msg.pose.pose.orientation.w = qw
    msg.pose.covariance = pose.covariance
    return msg


class InitialPosePublisher(Node):
    def __init__(self, **kwargs):
        super().__init__('initial_pose_publisher', **kwargs)

        qos_profile = QoSProfile(
            reliability=QoSReliabilityPolicy.RELIABLE,
            history=QoSHistoryPolicy.KEEP_LAST,
            depth=10
        )

        self._declare_params()

        seed = None if self.random_seed < 0 else self.random_seed
        self.reinitializer = PoseReinitializer(
            publish=self.publish_initial_pose,
            request_shutdown=self.request_shutdown,
            rng=np.random.default_rng(seed),
            min_offset=self.min_offset,
            max_offset=self.max_offset,
            shutdown_button=self.shutdown_button,
            frame_id=self.frame_id,
            score_gate=self.score_gate,
            score_threshold=self.score_threshold,
            logger=self.get_logger(),
            talk=self.talk,
        )

        # --- Publishers / Subscribers (all topic names from params) ---
        self.initialpose_pub = self.create_publisher(
            PoseWithCovarianceStamped, self.topic_initialpose, qos_profile
        )

        self.ekf_pose_sub = self.create_subscription(
            PoseStamped, self.topic_pose, self.ekf_pose_callback, qos_profile
        )
        self.score_sub = self.create_subscription(
            Float32Stamped, self.topic_score, self.score_callback, qos_profile
        )
        self.authority_sub = self.create_subscription(
            String, self.topic_authority, self.authority_callback, qos_profile
        )
        self.joy_sub = self.create_subscription(
            Joy, self.topic_joy, self.joy_callback, qos_profile
        )

        self.timer = self.create_timer(self.timer_period, self.timer_callback)

        if self.score_gate:
            self.get_logger().warn(
                f"Score gate enabled: reseeding only below score {self.score_threshold:.2f}")
        self.get_logger().info("Initial pose publisher started")

    def _declare_params(self):
        # --- Topics ---
        self.declare_parameter('topic_pose', '/ekf_pose')
        self.declare_parameter('topic_score', '/score_ndt')
        self.declare_parameter('topic_authority', '/wof_controlhead')
        self.declare_parameter('topic_joy', '/joy')
        self.declare_parameter('topic_initialpose', '/initialpose')
        self.declare_parameter('frame_id', 'map')

        # --- Randomization ---
        self.declare_parameter('min_offset', -2.0)
        self.declare_parameter('max_offset', 2.0)
        self.declare_parameter('random_seed', -1)   # < 0: seed from OS entropy

        # --- Misc ---
        self.declare_parameter('shutdown_button', 1)
        self.declare_parameter('timer_period', 5.0)
        self.declare_parameter('score_gate', False)
        self.declare_parameter('score_threshold', 2.3)
        self.declare_parameter('talk', True)

        # --- Read parameter values ---
        self.topic_pose = self.get_parameter('topic_pose').get_parameter_value().string_value
        self.topic_score = self.get_parameter('topic_score').get_parameter_value().string_value
        self.topic_authority = self.get_parameter('topic_authority').get_parameter_value().string_value
        self.topic_joy = self.get_parameter('topic_joy').get_parameter_value().string_value
        self.topic_initialpose = self.get_parameter('topic_initialpose').get_parameter_value().string_value
        self.frame_id = self.get_parameter('frame_id').get_parameter_value().string_value

        self.min_offset = self.get_parameter('min_offset').get_parameter_value().double_value
        self.max_offset = self.get_parameter('max_offset').get_parameter_value().double_value
        self.random_seed = self.get_parameter('random_seed').get_parameter_value().integer_value

        self.shutdown_button = self.get_parameter('shutdown_button').get_parameter_value().integer_value
        self.timer_period = check_timer_period(
            self.get_parameter('timer_period').get_parameter_value().double_value)
        self.score_gate = self.get_parameter('score_gate').get_parameter_value().bool_value
        self.score_threshold = self.get_parameter('score_threshold').get_parameter_value().double_value
        self.talk = self.get_parameter('talk').get_parameter_value().bool_value

    def ekf_pose_callback(self, msg):
        self.reinitializer.on_pose_update(pose_estimate_from_msg(msg))

    def score_callback(self, msg):
        self.reinitializer.on_score_update(msg.data)

    def authority_callback(self, msg):
        self.reinitializer.on_authority_command(msg.data)

    def joy_callback(self, msg):
        self.reinitializer.on_controller_input(msg.buttons)

    def timer_callback(self):
        self.reinitializer.on_timer_tick()

    def publish_initial_pose(self, pose):
        stamp = self.get_clock().now().to_msg()
        self.initialpose_pub.publish(initialpose_msg(pose, stamp))

    def request_shutdown(self):
        # spin() returns once the context is shut down
        rclpy.shutdown()


def main(args=None):
    rclpy.init(args=args)
    try:
        node = InitialPosePublisher()
    except ValueError:
        rclpy.shutdown()
        raise

    try:
        rclpy.spin(node)
    except (KeyboardInterrupt, ExternalShutdownException):
        pass
    finally:
        node.destroy_node()
        if rclpy.ok():
            rclpy.shutdown()


if __name__ == '__main__':
    main()
