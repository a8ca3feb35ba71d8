"""
InitialPosePublisher tests, skipped where the ROS 2 Python stack is missing
"""

import numpy as np
import pytest

rclpy = pytest.importorskip("rclpy")
geometry_msgs = pytest.importorskip("geometry_msgs.msg")
pytest.importorskip("sensor_msgs.msg")
pytest.importorskip("tier4_debug_msgs.msg")

from rclpy.parameter import Parameter  # noqa: E402
from sensor_msgs.msg import Joy  # noqa: E402
from std_msgs.msg import String  # noqa: E402

from random_initialpose.initial_pose_node import (  # noqa: E402
    InitialPosePublisher,
    initialpose_msg,
    main,
    pose_estimate_from_msg,
)
from random_initialpose.reinitializer import PoseReinitializer  # noqa: E402


def make_pose_stamped(x, y, z=0.0, q=(0.0, 0.0, 0.0, 1.0)):
    msg = geometry_msgs.PoseStamped()
    msg.header.frame_id = "map"
    msg.header.stamp.sec = 12
    msg.header.stamp.nanosec = 500
    msg.pose.position.x = x
    msg.pose.position.y = y
    msg.pose.position.z = z
    msg.pose.orientation.x, msg.pose.orientation.y, msg.pose.orientation.z, msg.pose.orientation.w = q
    return msg


def test_pose_estimate_from_msg():
    est = pose_estimate_from_msg(make_pose_stamped(3.0, -4.0, 1.0, (0.0, 0.0, 0.6, 0.8)))
    assert (est.x, est.y, est.z) == (3.0, -4.0, 1.0)
    assert est.orientation == (0.0, 0.0, 0.6, 0.8)
    assert est.stamp == (12, 500)
    assert est.frame_id == "map"


def test_initialpose_msg_round_through_reinitializer():
    published = []
    core = PoseReinitializer(published.append, lambda: None, rng=np.random.default_rng(3))
    core.on_pose_update(pose_estimate_from_msg(make_pose_stamped(10.0, 5.0, 2.0, (0.0, 0.0, 0.6, 0.8))))
    core.on_authority_command("DMP")
    core.on_authority_command("TSUKUBA")

    stamp = make_pose_stamped(0.0, 0.0).header.stamp
    msg = initialpose_msg(published[0], stamp)

    assert isinstance(msg, geometry_msgs.PoseWithCovarianceStamped)
    assert msg.header.frame_id == "map"
    assert msg.header.stamp.sec == 12
    assert 8.0 <= msg.pose.pose.position.x <= 12.0
    assert 3.0 <= msg.pose.pose.position.y <= 7.0
    assert msg.pose.pose.position.z == 0.0
    assert msg.pose.pose.orientation.z == pytest.approx(0.6)
    assert msg.pose.pose.orientation.w == pytest.approx(0.8)

    cov = np.asarray(msg.pose.covariance)
    assert np.count_nonzero(cov) == 3
    assert cov[0] == 0.25
    assert cov[7] == 0.25
    assert cov[35] == 0.06853891909122467


@pytest.fixture
def ros_context():
    rclpy.init()
    yield rclpy
    if rclpy.ok():
        rclpy.shutdown()


@pytest.fixture
def pose_node(ros_context):
    node = InitialPosePublisher(parameter_overrides=[Parameter('random_seed', value=5)])
    yield node
    node.destroy_node()


class TestInitialPosePublisher:

    def test_defaults(self, pose_node):
        assert pose_node.timer_period == 5.0
        assert pose_node.topic_initialpose == '/initialpose'
        assert pose_node.reinitializer.shutdown_button == 1

    def test_zero_timer_period_rejected(self, ros_context):
        with pytest.raises(ValueError):
            InitialPosePublisher(parameter_overrides=[Parameter('timer_period', value=0.0)])

    def test_publish_stamps_with_node_clock(self, pose_node):
        sent = []
        pose_node.initialpose_pub.publish = sent.append

        pose_node.authority_callback(String(data='TSUKUBA'))
        assert sent == []

        pose_node.authority_callback(String(data='DMP'))
        pose_node.authority_callback(String(data='TSUKUBA'))
        assert len(sent) == 1
        msg = sent[0]
        assert msg.header.frame_id == 'map'
        assert msg.header.stamp.sec > 0
        assert -2.0 <= msg.pose.pose.position.x <= 2.0

    def test_joy_button_shuts_down(self, pose_node, ros_context):
        pose_node.joy_callback(Joy(buttons=[0, 0, 0]))
        assert ros_context.ok()

        pose_node.joy_callback(Joy(buttons=[0, 1]))
        assert not ros_context.ok()


def test_main_shuts_down_on_bad_params():
    with pytest.raises(ValueError):
        main(args=['random_initialpose', '--ros-args', '-p', 'timer_period:=0.0'])
    assert not rclpy.ok()
