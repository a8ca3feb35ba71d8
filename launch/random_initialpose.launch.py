import os
from launch import LaunchDescription
from ament_index_python.packages import get_package_share_directory
from launch_ros.actions import Node
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration


def generate_launch_description():

    params_file = LaunchConfiguration("params_file")

    params_file_arg = DeclareLaunchArgument(
        "params_file",
        default_value=os.path.join(
            get_package_share_directory("random_initialpose"),
            "config",
            "random_initialpose.yaml"
        )
    )

    initial_pose_node = Node(
        package='random_initialpose',
        executable='random_initialpose',
        name='initial_pose_publisher',
        output='screen',
        parameters=[params_file]
    )

    return LaunchDescription([
        params_file_arg,
        initial_pose_node
    ])
