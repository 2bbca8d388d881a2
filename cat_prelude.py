"""
Words defined in the language itself. Everything here is built from
dip, keep, swap, dup and the native stack shuffles.
"""

PRELUDE = r'''
(// preserving combinators //)

: dip2 "Run q with the top two items set aside." [ x y q -- x y ]
    swap #[ dip ] dip ;
: dip3 [ x y z q -- x y z ]
    swap #[ dip2 ] dip ;
: dip4 [ w x y z q -- w x y z ]
    swap #[ dip3 ] dip ;

: dupd "Duplicate the second item in place." [ x y -- x x y ]
    #[ dup ] dip ;
: dup2 [ x y -- x y x y ] over over ;
: dup3 [ x y z -- x y z x y z ] pick pick pick ;

: keep2 "Run q on x and y, then restore x and y." [ x y q -- x y ]
    #[ dup2 ] dip dip2 ;
: keep3 [ x y z q -- x y z ]
    #[ dup3 ] dip dip3 ;

(// cleave //)

: bi "Apply p then q to x." [ x p q -- px qx ]
    #[ keep ] dip invoke ;
: bi2 [ x y p q -- pxy qxy ]
    #[ keep2 ] dip invoke ;
: bi3 [ x y z p q -- pxyz qxyz ]
    #[ keep3 ] dip invoke ;

: tri "Apply p, q, then r to x." [ x p q r -- px qx rx ]
    #[ #[ keep ] dip keep ] dip invoke ;
: tri2 [ x y p q r -- pxy qxy rxy ]
    #[ #[ keep2 ] dip keep2 ] dip invoke ;
: tri3 [ x y z p q r -- pxyz qxyz rxyz ]
    #[ #[ keep3 ] dip keep3 ] dip invoke ;

(// spread //)

: bi* "Apply p to x and q to y." [ x y p q -- px qy ]
    #[ dip ] dip invoke ;
: tri* "Apply p to x, q to y and r to z." [ x y z p q r -- px qy rz ]
    #[ #[ dip2 ] dip dip ] dip invoke ;

(// apply //)

: bi& "Apply q to x and to y." [ x y q -- qx qy ]
    dup bi* ;
: tri& [ x y z q -- qx qy qz ]
    dup dup tri* ;

: both? [ x y q -- ? ] bi& and ;
: either? [ x y q -- ? ] bi& or ;

(// conditionals //)

: if-not [ ? else then -- ] swap if ;
: when "Run q if the condition is true." [ ? q -- ] #[ ] if ;
: when-not [ ? q -- ] #[ ] if-not ;
'''
