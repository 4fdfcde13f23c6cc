"""kfmcli: command line front end for libkfm."""
